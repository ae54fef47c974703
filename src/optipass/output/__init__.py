"""Report renderers — Rich terminal and JSON."""

from optipass.output import json_report, terminal

__all__ = ["json_report", "terminal"]
