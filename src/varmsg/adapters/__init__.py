"""Adapters that satisfy the core ports (variable store, output sinks)."""
