from __future__ import annotations

import json
from pathlib import Path

import pytest

from varmsg.core.definitions import (
    DefinitionLoader,
    DefinitionRegistry,
    build_definition,
    load_definition_file,
)
from varmsg.core.errors import InvalidArgumentError, NotFoundError, UnsupportedError
from varmsg.core.models import MessageDefinition, OutputType, VariableSet
from varmsg.core.renderer import Renderer
from varmsg.core.scheduler import Scheduler


def _write(path: Path, config) -> str:
    path.write_text(json.dumps(config), encoding="utf-8")
    return str(path)


def test_build_definition_maps_fields(store) -> None:
    x = store.add("x", tags=("t",))
    trig = store.add("trig")

    definition = build_definition(
        "msg1",
        {
            "enabled": True,
            "prefix": "/varmsg/msg1/",
            "interval": 60,
            "trigger": ["trig"],
            "vars": {"tags": "t"},
            "output_type": "file",
            "output": "/tmp/out.log",
            "header": "/usr/share/headers/header1",
        },
        store,
    )

    assert definition.name == "msg1"
    assert definition.enabled
    assert definition.interval == 60
    assert definition.countdown == 60
    assert list(definition.body_set) == [x]
    assert list(definition.trigger_set) == [trig]
    assert definition.output_type is OutputType.FILE
    assert definition.header == "/usr/share/headers/header1"


def test_defaults_and_unknown_output_type(store) -> None:
    store.add("x")

    definition = build_definition("m", {"vars": ["x"], "output_type": "carrier-pigeon"}, store)

    assert not definition.enabled
    assert definition.interval == 0
    assert definition.trigger_set is None
    assert definition.output_type is OutputType.DISABLED


def test_missing_vars_is_not_found(store) -> None:
    with pytest.raises(NotFoundError):
        build_definition("m", {"enabled": True}, store)


@pytest.mark.parametrize(
    "config",
    [
        {"vars": ["x"], "interval": -1},
        {"vars": ["x"], "interval": "10"},
        {"vars": ["x"], "enabled": "yes"},
        {"vars": ["x"], "prefix": 5},
        ["x"],
    ],
)
def test_invalid_fields(store, config) -> None:
    store.add("x")
    with pytest.raises(InvalidArgumentError):
        build_definition("m", config, store)


def test_unresolvable_trigger_discards_definition(store) -> None:
    store.add("x")
    with pytest.raises(UnsupportedError):
        build_definition("m", {"vars": ["x"], "trigger": {}}, store)


def test_load_definition_file_rejects_malformed_json(store, tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(InvalidArgumentError):
        load_definition_file(str(path), store)


def test_registry_prepends_new_definitions() -> None:
    registry = DefinitionRegistry()
    for name in ["a", "b", "c"]:
        registry.add(MessageDefinition(name=name, body_set=VariableSet()))

    assert [definition.name for definition in registry] == ["c", "b", "a"]
    assert registry.get("b").name == "b"
    assert registry.get("z") is None


def test_loader_opens_sink_and_publishes_status(store, dispatcher, tmp_path) -> None:
    store.add("x")
    path = _write(tmp_path / "msg.json", {"enabled": False, "prefix": "/p", "vars": ["x"]})
    loader = DefinitionLoader(store, dispatcher)

    definition = loader.load_file(path)

    assert definition is not None
    assert dispatcher.opened == ["msg"]
    assert store.get_value("/p/txcount") == "0"
    assert store.get_value("/p/errcount") == "0"
    assert store.get_value("/p/enable") == "0"
    assert store.get_value("/p/rescan") == "0"


def test_loader_keeps_existing_control_values(store, dispatcher, tmp_path) -> None:
    store.add("x")
    store.set_value("/p/enable", "1")
    path = _write(tmp_path / "msg.json", {"enabled": False, "prefix": "/p", "vars": ["x"]})

    DefinitionLoader(store, dispatcher).load_file(path)

    assert store.get_value("/p/enable") == "1"


def test_directory_with_bad_definition_still_loads_and_fires_good_one(store, dispatcher, tmp_path) -> None:
    store.add("x", "1")
    store.add("y", "hello")
    _write(tmp_path / "a_bad.json", {"enabled": True, "interval": 1, "vars": ["x", "nope"]})
    _write(tmp_path / "b_good.json", {"enabled": True, "interval": 2, "vars": ["x", "y"]})
    (tmp_path / "notes.txt").write_text("not a config", encoding="utf-8")
    (tmp_path / "subdir").mkdir()
    loader = DefinitionLoader(store, dispatcher)

    loaded = loader.load_directory(str(tmp_path))

    assert loaded == 1
    assert [definition.name for definition in loader.registry] == ["b_good"]

    scheduler = Scheduler(loader.registry, Renderer(store), dispatcher)
    for _ in range(4):
        scheduler.pulse()
    assert dispatcher.sent == [
        ("b_good", '{ "x":"1", "y":"hello"}\n'),
        ("b_good", '{ "x":"1", "y":"hello"}\n'),
    ]


def test_missing_directory_loads_nothing(store, dispatcher, tmp_path) -> None:
    loader = DefinitionLoader(store, dispatcher)

    assert loader.load_directory(str(tmp_path / "absent")) == 0
    assert len(loader.registry) == 0


def test_trigger_only_definition_renders_on_demand(store, dispatcher, tmp_path) -> None:
    store.add("x", "1")
    store.add("y", "hello")
    path = _write(tmp_path / "snap.json", {"enabled": True, "interval": 0, "vars": ["x", "y"]})
    loader = DefinitionLoader(store, dispatcher)
    definition = loader.load_file(path)

    assert Renderer(store).render(definition) == '{ "x":"1", "y":"hello"}\n'
