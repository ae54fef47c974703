"""optipass — bounded, sequential code-optimization passes over a git change-set."""

__version__ = "0.1.0"
