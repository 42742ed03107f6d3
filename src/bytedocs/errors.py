class BytedocsError(Exception):
    """Base class for all bytedocs errors."""


class SourceParseError(BytedocsError):
    """A source directory could not be read or parsed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot analyse '{path}': {reason}")
        self.path = path
        self.reason = reason


class UnsupportedFrameworkError(BytedocsError, ValueError):
    """The requested web framework has no capability descriptor."""
