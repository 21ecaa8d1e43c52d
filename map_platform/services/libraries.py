"""Resolve browser libraries from a local cache or a pinned CDN."""

from __future__ import annotations

import html
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)

LIBS_DIR = "libs"


@dataclass(frozen=True)
class LibraryFile:
    """A file of a library: where it lives in the cache and how it is served."""

    cache_path: str
    bundle_name: str
    cdn_url: str
    kind: str  # "script" or "style"


@dataclass(frozen=True)
class LibrarySpec:
    name: str
    files: tuple[LibraryFile, ...]
    directories: tuple[tuple[str, str], ...] = ()  # (cache path, bundle name)


@dataclass(slots=True)
class ResolvedLibrary:
    spec: LibrarySpec
    local: bool

    def url(self, item: LibraryFile) -> str:
        return f"./{LIBS_DIR}/{item.bundle_name}" if self.local else item.cdn_url


@dataclass(slots=True)
class LibraryTags:
    """HTML fragments for the page shell."""

    styles: str
    scripts: str
    resolved: list[ResolvedLibrary] = field(default_factory=list)


MAPLIBRE = LibrarySpec(
    name="maplibre-gl",
    files=(
        LibraryFile("maplibre-gl/dist/maplibre-gl.css", "maplibre-gl.css",
                    "https://unpkg.com/maplibre-gl@3.6.1/dist/maplibre-gl.css", "style"),
        LibraryFile("maplibre-gl/dist/maplibre-gl.js", "maplibre-gl.js",
                    "https://unpkg.com/maplibre-gl@3.6.1/dist/maplibre-gl.js", "script"),
    ),
)
PANNELLUM = LibrarySpec(
    name="pannellum",
    files=(
        LibraryFile("pannellum/build/pannellum.css", "pannellum.css",
                    "https://cdn.jsdelivr.net/npm/pannellum@2.5.6/build/pannellum.css", "style"),
        LibraryFile("pannellum/build/pannellum.js", "pannellum.js",
                    "https://cdn.jsdelivr.net/npm/pannellum@2.5.6/build/pannellum.js", "script"),
    ),
)
THREE = LibrarySpec(
    name="three",
    files=(
        LibraryFile("three/build/three.min.js", "three.min.js",
                    "https://cdn.jsdelivr.net/npm/three@0.149.0/build/three.min.js", "script"),
    ),
)
GLTF_LOADER = LibrarySpec(
    name="gltf-loader",
    files=(
        LibraryFile("three/examples/js/loaders/GLTFLoader.js", "GLTFLoader.js",
                    "https://cdn.jsdelivr.net/npm/three@0.149.0/examples/js/loaders/GLTFLoader.js", "script"),
    ),
)
DRACO_LOADER = LibrarySpec(
    name="draco-loader",
    files=(
        LibraryFile("three/examples/js/loaders/DRACOLoader.js", "DRACOLoader.js",
                    "https://cdn.jsdelivr.net/npm/three@0.149.0/examples/js/loaders/DRACOLoader.js", "script"),
    ),
    directories=(("three/examples/js/libs/draco", "draco"),),
)
DRACO_DECODER_CDN = "https://cdn.jsdelivr.net/npm/three@0.149.0/examples/js/libs/draco/"

BASE_LIBRARIES: tuple[LibrarySpec, ...] = (MAPLIBRE, PANNELLUM)
MODEL_LIBRARIES: tuple[LibrarySpec, ...] = (THREE, GLTF_LOADER, DRACO_LOADER)


class LibraryResolver:
    """Copy cached libraries into a workspace, falling back to the CDN."""

    def __init__(self, cache_dir: Path | str | None):
        self.cache_dir = Path(cache_dir) if cache_dir else None

    def required(self, *, with_models: bool) -> Sequence[LibrarySpec]:
        return BASE_LIBRARIES + MODEL_LIBRARIES if with_models else BASE_LIBRARIES

    def is_available(self, spec: LibrarySpec) -> bool:
        """A library counts as cached only when every file and directory exists."""

        if self.cache_dir is None:
            return False
        files_present = all((self.cache_dir / item.cache_path).is_file() for item in spec.files)
        dirs_present = all((self.cache_dir / source).is_dir() for source, _ in spec.directories)
        return files_present and dirs_present

    def resolve(self, workspace_dir: Path, *, with_models: bool, include_local: bool) -> LibraryTags:
        resolved = []
        for spec in self.required(with_models=with_models):
            local = include_local and self.is_available(spec) and self._copy(spec, workspace_dir)
            if include_local and not local:
                logger.info("Library %s not cached locally; using CDN", spec.name)
            resolved.append(ResolvedLibrary(spec=spec, local=local))
        return self._tags(resolved, with_models=with_models)

    def _copy(self, spec: LibrarySpec, workspace_dir: Path) -> bool:
        cache_dir = self.cache_dir or Path()
        target = workspace_dir / LIBS_DIR
        copied: list[Path] = []
        try:
            target.mkdir(parents=True, exist_ok=True)
            for item in spec.files:
                destination = target / item.bundle_name
                shutil.copyfile(cache_dir / item.cache_path, destination)
                copied.append(destination)
            for source, name in spec.directories:
                destination = target / name
                shutil.copytree(cache_dir / source, destination, dirs_exist_ok=True)
                copied.append(destination)
        except OSError as exc:
            logger.warning("Copying cached library %s failed, using CDN: %s", spec.name, exc)
            for path in copied:
                if path.is_dir():
                    shutil.rmtree(path, ignore_errors=True)
                else:
                    path.unlink(missing_ok=True)
            return False
        return True

    @staticmethod
    def _tags(resolved: list[ResolvedLibrary], *, with_models: bool) -> LibraryTags:
        styles: list[str] = []
        scripts: list[str] = []
        for library in resolved:
            for item in library.spec.files:
                url = html.escape(library.url(item), quote=True)
                if item.kind == "style":
                    styles.append(f'<link rel="stylesheet" href="{url}" />')
                else:
                    scripts.append(f'<script src="{url}"></script>')

        if with_models:
            draco = next(lib for lib in resolved if lib.spec is DRACO_LOADER)
            decoder_path = f"./{LIBS_DIR}/draco/" if draco.local else DRACO_DECODER_CDN
            scripts.append(f'<script>window.__DRACO_DECODER_PATH__ = "{decoder_path}";</script>')

        return LibraryTags(styles="\n  ".join(styles), scripts="\n  ".join(scripts), resolved=resolved)
