"""Exception hierarchy for the book manager."""

from pathlib import Path


class ManagerError(Exception):
    """Base exception for all book manager errors."""


class BookLookupError(ManagerError):
    """The bibliographic search service was unreachable or returned bad data."""


class ExtractionError(ManagerError):
    """The model never produced schema-valid metadata for a file."""

    def __init__(self, message: str, filename: str) -> None:
        super().__init__(f"{filename}: {message}")
        self.filename = filename


class RelocationError(ManagerError):
    """Moving a file or changing its ownership failed."""

    def __init__(self, message: str, source: Path, destination: Path) -> None:
        super().__init__(f"{message}: {source} -> {destination}")
        self.source = source
        self.destination = destination


class SourceMissingError(RelocationError):
    """The file to relocate no longer exists (e.g. already relocated)."""


class DestinationExistsError(RelocationError):
    """Another file already occupies the computed destination."""
