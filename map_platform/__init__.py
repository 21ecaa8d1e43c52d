"""Top-level package for the map platform export backend."""

__version__ = "1.0.0"

from .api.app_factory import create_app  # noqa: E402
from .pipelines.export_pipeline import ExportPipeline  # noqa: E402

__all__ = ["create_app", "ExportPipeline", "__version__"]
