"""Export pipeline orchestrator."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from ..config import APP_CONFIG, STORAGE_PATHS
from ..core import ExportOptions
from ..core.models import DEFAULT_PROFILE
from ..services import (
    ArchiveStream,
    ArchiveStreamer,
    AssetFetcher,
    BundleAssembler,
    LibraryResolver,
    ProjectNormalizer,
    ProjectRepository,
    TemplateSource,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ExportPipeline:
    """Turns a stored project into a streamed static-site archive."""

    repository: ProjectRepository
    normalizer: ProjectNormalizer
    assembler: BundleAssembler
    streamer: ArchiveStreamer
    default_profile: str = DEFAULT_PROFILE

    def options(self, payload: ExportOptions | Mapping[str, object] | None) -> ExportOptions:
        if isinstance(payload, ExportOptions):
            return payload
        return ExportOptions.from_mapping(payload, default_profile=self.default_profile)

    def run(
        self,
        project_id: str,
        options: ExportOptions | Mapping[str, object] | None = None,
    ) -> ArchiveStream:
        options = self.options(options)

        logger.info("Starting export for project %s", project_id)
        document = self.repository.fetch_project_by_id(project_id)
        export_document = self.normalizer.normalize(document, options)

        bundle = self.assembler.assemble(export_document, options)
        try:
            stream = self.streamer.stream(bundle.workspace, export_document.project.title, project_id)
        except BaseException:
            bundle.workspace.cleanup()
            raise

        logger.info("Export for project %s ready as %s", project_id, stream.filename)
        return stream

    @classmethod
    def default(cls, repository: ProjectRepository) -> "ExportPipeline":
        fetcher = AssetFetcher(timeout=APP_CONFIG.download_timeout, base_url=APP_CONFIG.asset_base_url)
        return cls(
            repository=repository,
            normalizer=ProjectNormalizer(
                default_style=APP_CONFIG.default_style,
                generator_name=APP_CONFIG.generator_name,
                generator_version=APP_CONFIG.generator_version,
            ),
            assembler=BundleAssembler(
                fetcher=fetcher,
                libraries=LibraryResolver(STORAGE_PATHS.libs_cache),
                templates=TemplateSource(STORAGE_PATHS.templates, encoding=APP_CONFIG.template_encoding),
                workspace_root=STORAGE_PATHS.workspaces,
            ),
            streamer=ArchiveStreamer(),
            default_profile=APP_CONFIG.default_profile,
        )
