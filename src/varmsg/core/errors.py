"""Error taxonomy shared by the core and adapters.

Every error raised by varmsg derives from VarMsgError so callers can catch a
whole definition's failure in one place. The builtin mixins keep the errors
usable with ordinary Python handling (ValueError, LookupError, OSError).
"""

from __future__ import annotations


class VarMsgError(Exception):
    """Base class for all varmsg errors."""

    code = "error"


class InvalidArgumentError(VarMsgError, ValueError):
    """Missing or malformed input."""

    code = "invalid-argument"


class NotFoundError(VarMsgError, LookupError):
    """A variable name or handle could not be resolved."""

    code = "not-found"


class SizeLimitError(VarMsgError, ValueError):
    """A bounded value (such as a tag spec) is too long."""

    code = "size-limit"


class UnsupportedError(VarMsgError, ValueError):
    """A value is well-formed but not supported (unknown flag, empty query)."""

    code = "unsupported"


class OutputError(VarMsgError, OSError):
    """Writing to the formatting buffer or an output sink failed."""

    code = "io"


class SinkNotImplementedError(VarMsgError, NotImplementedError):
    """The configured output type has no transport implementation."""

    code = "not-implemented"


class StoreError(VarMsgError):
    """The variable store connection or query failed."""

    code = "store"
