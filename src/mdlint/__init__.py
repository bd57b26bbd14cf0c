"""mdlint - configurable markdown style checker with automatic fixes."""

__version__ = "0.4.0"
