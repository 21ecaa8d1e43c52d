"""Core domain primitives for the map platform exporter."""

from .models import (
    ExportDocument,
    ExportOptions,
    FooterInfo,
    Logo,
    Media,
    Model3D,
    PanoramaMedia,
    Place,
    ProjectInfo,
    Route,
    TourMedia,
)
from .exceptions import (
    ArchiveError,
    ExportError,
    InvalidOptions,
    InvalidPlace,
    MissingPlace,
    MissingPrincipal,
    MissingProject,
    ValidationError,
)

__all__ = [
    "ExportDocument",
    "ExportOptions",
    "FooterInfo",
    "Logo",
    "Media",
    "Model3D",
    "PanoramaMedia",
    "Place",
    "ProjectInfo",
    "Route",
    "TourMedia",
    "ArchiveError",
    "ExportError",
    "InvalidOptions",
    "InvalidPlace",
    "MissingPlace",
    "MissingPrincipal",
    "MissingProject",
    "ValidationError",
]
