"""Custom exception hierarchy for the map platform export domain."""

from __future__ import annotations


class ExportError(RuntimeError):
    """Raised when a project cannot be exported."""

    status_code = 500

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def as_dict(self) -> dict:
        """Return a serializable representation."""
        payload = {"error": type(self).__name__, "message": str(self)}
        if self.details:
            payload["details"] = self.details
        return payload


class MissingProject(ExportError):
    """The requested project does not exist."""

    status_code = 404


class MissingPrincipal(ExportError):
    """The project has no principal place."""

    status_code = 400


class InvalidPlace(ExportError):
    """A place carries coordinates outside the geographic range."""

    status_code = 400


class InvalidOptions(ExportError):
    """Export options failed validation."""

    status_code = 400


class ArchiveError(ExportError):
    """The ZIP archive could not be produced."""


class ValidationError(ExportError):
    """A project payload failed validation before being stored."""

    status_code = 400


class MissingPlace(ExportError):
    """The requested secondary place does not exist in the project."""

    status_code = 404
