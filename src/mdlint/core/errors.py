"""Exception types shared by the lint core."""


class MdlintError(Exception):
    """Base class for all mdlint errors."""


class ConfigError(MdlintError):
    """A configuration file could not be read or parsed."""


class PositionError(MdlintError, ValueError):
    """An offset or (line, column) pair lies outside the document.

    Raised when a rule or parser asks for a position the text does not
    contain. This is a contract violation between components and is never
    clamped.
    """


class LineNotFoundError(MdlintError, LookupError):
    """A line number beyond the document's line count was requested."""


class FixConflictError(MdlintError):
    """Two fixes touch overlapping ranges (only raised in strict mode)."""

    def __init__(self, kept, dropped):
        self.kept = kept
        self.dropped = dropped
        super().__init__(
            f"Fix '{dropped.description}' at {dropped.start_line}:{dropped.start_column} "
            f"overlaps '{kept.description}' at {kept.start_line}:{kept.start_column}"
        )
