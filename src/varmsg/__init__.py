"""varmsg - variable message generator.

Builds JSON snapshots of variable store values on a schedule and sends them
to a configured output.
"""

__version__ = "0.1.0"
