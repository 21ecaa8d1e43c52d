"""Service layer exports."""

from .archive import ArchiveStream, ArchiveStreamer
from .bundle import Bundle, BundleAssembler
from .fetcher import AssetFetcher, DownloadResult
from .libraries import LibraryResolver
from .normalizer import ProjectNormalizer
from .projects import ProjectRepository, RedisProjectStore, validate_project
from .templates import TemplateSource
from .workspace import Workspace

__all__ = [
    "ArchiveStream",
    "ArchiveStreamer",
    "Bundle",
    "BundleAssembler",
    "AssetFetcher",
    "DownloadResult",
    "LibraryResolver",
    "ProjectNormalizer",
    "ProjectRepository",
    "RedisProjectStore",
    "validate_project",
    "TemplateSource",
    "Workspace",
]
