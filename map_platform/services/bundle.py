"""Materialize an export document as a self-contained static site."""

from __future__ import annotations

import html
import json
import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from urllib import parse as urllib_parse

from ..core import ExportDocument, ExportOptions, Logo, Place
from ..utils import slugify
from .fetcher import AssetFetcher
from .libraries import LibraryResolver, LibraryTags
from .normalizer import SATELLITE_STYLE
from .templates import SCRIPT_TEMPLATE, STYLESHEET_TEMPLATE, TemplateSource, render
from .workspace import Workspace

logger = logging.getLogger(__name__)

PAGE_FILENAME = "map.html"

SATELLITE_RASTER_STYLE = {
    "version": 8,
    "sources": {
        "satellite": {
            "type": "raster",
            "tiles": [
                "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}"
            ],
            "tileSize": 256,
            "maxzoom": 19,
            "attribution": "Tiles &copy; Esri",
        }
    },
    "layers": [{"id": "satellite", "type": "raster", "source": "satellite"}],
}


def _extension(url: str, default: str) -> str:
    suffix = posixpath.splitext(urllib_parse.urlsplit(url).path)[1].lower()
    return suffix if 1 < len(suffix) <= 6 else default


def retina_url(url: str) -> str:
    """Return the ``@2x`` variant of an image URL."""

    parts = urllib_parse.urlsplit(url)
    root, ext = posixpath.splitext(parts.path)
    return urllib_parse.urlunsplit(parts._replace(path=f"{root}@2x{ext}"))


@dataclass(slots=True)
class AssemblyReport:
    """What was localized and what stayed remote."""

    logo_localized: bool = False
    models_localized: int = 0
    models_remote: int = 0
    libraries: LibraryTags | None = None


@dataclass(slots=True)
class Bundle:
    workspace: Workspace
    report: AssemblyReport


class BundleAssembler:
    """Write the page, data and assets of an export into a fresh workspace."""

    def __init__(
        self,
        *,
        fetcher: AssetFetcher,
        libraries: LibraryResolver,
        templates: TemplateSource,
        workspace_root: Path | str | None = None,
    ):
        self.fetcher = fetcher
        self.libraries = libraries
        self.templates = templates
        self.workspace_root = workspace_root

    def assemble(self, document: ExportDocument, options: ExportOptions) -> Bundle:
        workspace = Workspace.create(self.workspace_root)
        try:
            report = self._assemble(workspace, document, options)
        except BaseException:
            workspace.cleanup()
            raise
        return Bundle(workspace=workspace, report=report)

    def _assemble(self, workspace: Workspace, document: ExportDocument, options: ExportOptions) -> AssemblyReport:
        report = AssemblyReport()
        with_models = document.has_models()

        js_dir = workspace.mkdir("assets/js")
        css_dir = workspace.mkdir("assets/css")
        images_dir = workspace.mkdir("images")
        models_dir = workspace.mkdir("assets/models") if with_models else None

        logo = document.project.logo
        if logo is not None:
            report.logo_localized = self._localize_logo(logo, images_dir, options.inline_assets)

        if models_dir is not None and options.inline_assets:
            for place in document.places():
                if place.model3d is None:
                    continue
                if self._localize_model(place, models_dir):
                    report.models_localized += 1
                else:
                    report.models_remote += 1

        if document.project.style_url == SATELLITE_STYLE:
            document.project.style = SATELLITE_RASTER_STYLE

        payload = document.as_dict()
        if not options.inline_data:
            data_dir = workspace.mkdir("data")
            (data_dir / "project.json").write_text(
                json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
            )

        tags = self.libraries.resolve(
            workspace.path,
            with_models=with_models,
            include_local=options.include_local_libs,
        )
        report.libraries = tags

        templates = self.templates.load()
        page = render(
            templates.page,
            {
                "TITLE": html.escape(document.project.title),
                "LIB_STYLES": tags.styles,
                "LIB_SCRIPTS": tags.scripts,
                "INLINE_DATA": self._inline_data(payload) if options.inline_data else "",
                "HEADER_LOGO": self._header_logo(document.project.title, logo),
            },
        )

        (workspace.path / PAGE_FILENAME).write_text(page, encoding="utf-8")
        (js_dir / SCRIPT_TEMPLATE).write_text(templates.script, encoding="utf-8")
        (css_dir / STYLESHEET_TEMPLATE).write_text(templates.stylesheet, encoding="utf-8")

        logger.info(
            "Assembled bundle in %s (models local=%s remote=%s)",
            workspace.path,
            report.models_localized,
            report.models_remote,
        )
        return report

    def _localize_logo(self, logo: Logo, images_dir: Path, inline_assets: bool) -> bool:
        remote = logo.src
        remote_retina = retina_url(remote)
        if not inline_assets:
            logo.srcset = f"{remote} 1x, {remote_retina} 2x"
            return False

        ext = _extension(remote, ".png")
        primary = self.fetcher.download(remote, images_dir / f"logo{ext}")
        if not primary.ok:
            logger.warning("Keeping remote logo %s", remote)
            logo.srcset = f"{remote} 1x, {remote_retina} 2x"
            return False

        logo.src = f"./images/logo{ext}"
        retina = self.fetcher.download(remote_retina, images_dir / f"logo@2x{ext}")
        retina_src = f"./images/logo@2x{ext}" if retina.ok else remote_retina
        logo.srcset = f"{logo.src} 1x, {retina_src} 2x"
        return True

    def _localize_model(self, place: Place, models_dir: Path) -> bool:
        model = place.model3d
        if model is None:
            return False
        name = slugify(place.id) or f"model-{slugify(place.name) or 'place'}"
        filename = f"{name}{_extension(model.url, '.glb')}"
        result = self.fetcher.download(model.url, models_dir / filename)
        if not result.ok:
            logger.warning("Keeping remote model for place %s: %s", place.id, result.error)
            return False
        model.url = f"./assets/models/{filename}"
        return True

    @staticmethod
    def _inline_data(payload: dict) -> str:
        serialized = json.dumps(payload, ensure_ascii=False).replace("</", "<\\/")
        return f"<script>window.__PROJECT__ = {serialized};</script>"

    @staticmethod
    def _header_logo(title: str, logo: Logo | None) -> str:
        text = f'<span class="logo-text">{html.escape(title)}</span>'
        if logo is None:
            return text
        srcset = f' srcset="{html.escape(logo.srcset, quote=True)}"' if logo.srcset else ""
        return (
            f'<img src="{html.escape(logo.src, quote=True)}"{srcset} '
            f'alt="{html.escape(logo.alt, quote=True)}" class="logo-img" /> {text}'
        )
