from __future__ import annotations

import itertools
from pathlib import Path
from typing import Dict

import pytest

from map_platform.services import (
    ArchiveStreamer,
    BundleAssembler,
    LibraryResolver,
    ProjectNormalizer,
    RedisProjectStore,
    TemplateSource,
)
from map_platform.services.fetcher import DownloadResult
from map_platform.services.polyline import encode

PACKAGED_TEMPLATES = Path(__file__).resolve().parent.parent / "map_platform" / "templates"


class FakeFetcher:
    """Stand-in for :class:`AssetFetcher` serving bytes from a dict."""

    def __init__(self) -> None:
        self.payloads: Dict[str, bytes] = {}
        self.requested: list[str] = []

    def download(self, url: str, dest) -> DownloadResult:
        self.requested.append(url)
        if url not in self.payloads:
            return DownloadResult(url=url, error="404 Not Found")
        Path(dest).write_bytes(self.payloads[url])
        return DownloadResult(url=url, path=Path(dest))


class FakeRedis:
    """The handful of Redis commands the project store issues."""

    def __init__(self) -> None:
        self.values: dict[str, bytes] = {}
        self.sorted_sets: dict[str, dict[str, tuple[float, int]]] = {}
        self._sequence = itertools.count()

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value.encode() if isinstance(value, str) else value
        return True

    def delete(self, *keys):
        return sum(1 for key in keys if self.values.pop(key, None) is not None)

    def zadd(self, key, mapping):
        members = self.sorted_sets.setdefault(key, {})
        for member, score in mapping.items():
            members[member] = (score, next(self._sequence))
        return len(mapping)

    def zrem(self, key, *members):
        entries = self.sorted_sets.get(key, {})
        return sum(1 for member in members if entries.pop(member, None) is not None)

    def zrevrange(self, key, start, end):
        entries = self.sorted_sets.get(key, {})
        ordered = sorted(entries, key=lambda member: entries[member], reverse=True)
        stop = None if end == -1 else end + 1
        return [member.encode() for member in ordered[start:stop]]


class FakeJob:
    def __init__(self, job_id: str, *, status: str = "queued", result=None, meta=None):
        self.id = job_id
        self.status = status
        self.result = result
        self.meta = meta or {}
        self.exc_info = "Traceback: boom" if status == "failed" else None

    def get_status(self, refresh: bool = True) -> str:
        return self.status

    @property
    def is_finished(self) -> bool:
        return self.status == "finished"

    @property
    def is_failed(self) -> bool:
        return self.status == "failed"


class FakeQueue:
    def __init__(self) -> None:
        self.enqueued: list[dict] = []

    def enqueue(self, func, *, kwargs, job_id, meta):
        self.enqueued.append({"func": func, "kwargs": kwargs, "job_id": job_id, "meta": meta})
        return FakeJob(job_id, meta=meta)


@pytest.fixture()
def project_document() -> dict:
    return {
        "_id": "p1",
        "title": "Demo Tour",
        "description": "A short demo",
        "logoUrl": "https://cdn.example.com/brand/logo.png",
        "principal": {
            "_id": "home",
            "name": "Home",
            "latitude": 48.8566,
            "longitude": 2.3522,
            "zoom": 12,
            "heading": 0,
            "category": "Principal",
            "virtualtour": "https://cdn.example.com/pano/home.jpg",
            "footerInfo": {"location": "Paris"},
        },
        "secondaries": [
            {
                "_id": "s1",
                "name": "Versailles",
                "latitude": 48.8049,
                "longitude": 2.1204,
                "category": "Secondary",
                "tourUrl": "https://tours.example.com/versailles",
                "routesFromBase": [encode([(48.8566, 2.3522), (48.83, 2.25), (48.8049, 2.1204)])],
                "footerInfo": {"location": "Versailles", "distance": "21.3 KM", "time": "32 mins"},
                "model3d": {
                    "url": "https://cdn.example.com/models/chateau.glb",
                    "scale": 2,
                    "rotation": [0, 1.57, 0],
                    "altitude": 10,
                },
            }
        ],
    }


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def workspace_root(tmp_path: Path) -> Path:
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture()
def make_assembler(tmp_path: Path, fetcher: FakeFetcher, workspace_root: Path):
    def factory(*, templates: Path = PACKAGED_TEMPLATES, libs_cache: Path | None = None) -> BundleAssembler:
        return BundleAssembler(
            fetcher=fetcher,  # type: ignore[arg-type]
            libraries=LibraryResolver(libs_cache or tmp_path / "empty-cache"),
            templates=TemplateSource(templates),
            workspace_root=workspace_root,
        )

    return factory


@pytest.fixture()
def normalizer() -> ProjectNormalizer:
    return ProjectNormalizer(generator_name="test-export", generator_version="9.9.9")


@pytest.fixture()
def streamer() -> ArchiveStreamer:
    return ArchiveStreamer(chunk_size=1024)


@pytest.fixture()
def store() -> RedisProjectStore:
    return RedisProjectStore(FakeRedis())


@pytest.fixture()
def queue() -> FakeQueue:
    return FakeQueue()


@pytest.fixture()
def make_job():
    return FakeJob
