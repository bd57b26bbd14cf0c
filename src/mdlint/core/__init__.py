"""Core modules: text positions, document model, parser and lint engine."""
from .errors import (
    MdlintError,
    ConfigError,
    PositionError,
    LineNotFoundError,
    FixConflictError,
)
from .position import PositionIndex
from .document import Document, Event, detect_front_matter

__all__ = [
    "MdlintError",
    "ConfigError",
    "PositionError",
    "LineNotFoundError",
    "FixConflictError",
    "PositionIndex",
    "Document",
    "Event",
    "detect_front_matter",
]
