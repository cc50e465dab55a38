from typing import Any


class ParseError(Exception):
    """Base exception for all fatal parse errors."""

    def __init__(self, message: str):
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"detail": str(self)}


class MissingBodyError(ParseError):
    """Raised when the markup tree has no body element."""

    def __init__(self, *, message: str | None = None):
        super().__init__(message or "document without a body")


class InvalidMetadataError(ParseError):
    """Raised when the metadata block does not declare a non-empty id."""

    def __init__(self, metadata: dict[str, str], *, message: str | None = None):
        super().__init__(message or f"invalid metadata format, missing at least id: {metadata!r}")
        self.metadata = metadata

    def to_dict(self) -> dict[str, Any]:
        return {"detail": str(self), "metadata": self.metadata}


class ForbiddenFragmentStepsError(ParseError):
    """Raised when a fragment declares steps (level-1 or level-2 headings)."""

    def __init__(self, *, message: str | None = None):
        super().__init__(message or "defining steps in a fragment is forbidden")


class ForbiddenFragmentImportsError(ParseError):
    """Raised when a fragment imports another document."""

    def __init__(self, *, message: str | None = None):
        super().__init__(message or "importing content in a fragment is forbidden")
