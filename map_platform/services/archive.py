"""Stream a workspace as a ZIP archive."""

from __future__ import annotations

import io
import logging
import os
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from ..core.exceptions import ArchiveError
from ..utils import slugify
from .workspace import Workspace

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/zip"


class _ChunkBuffer(io.RawIOBase):
    """Unseekable sink collecting bytes written by :class:`zipfile.ZipFile`."""

    def __init__(self) -> None:
        super().__init__()
        self._chunks: list[bytes] = []

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:  # type: ignore[override]
        self._chunks.append(bytes(data))
        return len(data)

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def archive_filename(title: str | None, project_id: str, now: datetime | None = None) -> str:
    """Return ``<slug>-<id>-<UTC timestamp>.zip``."""

    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    slug = slugify(title) or "project"
    return f"{slug}-{slugify(project_id) or 'export'}-{now.strftime('%Y%m%dT%H%M%S')}.zip"


class ArchiveStream:
    """A single-use ZIP byte stream over a workspace.

    The workspace is removed when the chunk generator finishes (normally, with
    an error, or because the consumer closed it early) and again, as a no-op,
    when :meth:`close` runs. Either signal alone is enough.
    """

    def __init__(self, workspace: Workspace, filename: str, chunks: Iterator[bytes]):
        self.workspace = workspace
        self.filename = filename
        self._chunks = chunks

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": CONTENT_TYPE,
            "Content-Disposition": f'attachment; filename="{self.filename}"',
        }

    def __iter__(self) -> Iterator[bytes]:
        return self._chunks

    def close(self) -> None:
        close = getattr(self._chunks, "close", None)
        if close is not None:
            close()
        self.workspace.cleanup()

    def write_to(self, destination: Path | str) -> Path:
        """Write the archive to ``destination`` without leaving partial files."""

        destination = Path(destination)
        partial = destination.with_name(destination.name + ".part")
        try:
            with partial.open("wb") as handle:
                for chunk in self:
                    handle.write(chunk)
            os.replace(partial, destination)
        except OSError as exc:
            partial.unlink(missing_ok=True)
            raise ArchiveError(f"Could not write archive to {destination}") from exc
        except BaseException:
            partial.unlink(missing_ok=True)
            raise
        finally:
            self.close()
        return destination


class ArchiveStreamer:
    """Produce deflated ZIP archives of workspaces, flattened at the root."""

    def __init__(self, *, chunk_size: int = 64 * 1024, compresslevel: int = 9):
        self.chunk_size = chunk_size
        self.compresslevel = compresslevel

    def stream(
        self,
        workspace: Workspace,
        title: str | None,
        project_id: str,
        *,
        now: datetime | None = None,
    ) -> ArchiveStream:
        filename = archive_filename(title, project_id, now)
        return ArchiveStream(workspace, filename, self._iter_chunks(workspace))

    def _iter_chunks(self, workspace: Workspace) -> Iterator[bytes]:
        try:
            yield from self._write_archive(workspace.path)
        except ArchiveError:
            logger.exception("Archiving %s failed", workspace.path)
            raise
        finally:
            workspace.cleanup()

    def _write_archive(self, root: Path) -> Iterator[bytes]:
        buffer = _ChunkBuffer()
        try:
            archive = zipfile.ZipFile(
                buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=self.compresslevel
            )
            for path in self._walk(root):
                arcname = path.relative_to(root).as_posix()
                if path.is_dir():
                    archive.writestr(arcname + "/", b"")
                else:
                    yield from self._write_file(archive, buffer, path, arcname)
                chunk = buffer.drain()
                if chunk:
                    yield chunk
            archive.close()
        except (zipfile.LargeZipFile, ValueError, OSError) as exc:
            raise ArchiveError(f"Could not archive {root}") from exc

        chunk = buffer.drain()
        if chunk:
            yield chunk

    def _write_file(
        self, archive: zipfile.ZipFile, buffer: _ChunkBuffer, path: Path, arcname: str
    ) -> Iterator[bytes]:
        try:
            source = path.open("rb")
        except OSError as exc:
            logger.warning("Skipping %s: %s", arcname, exc)
            return

        with source:
            size = os.fstat(source.fileno()).st_size
            yield from self._copy(archive, buffer, source, arcname, size)

    def _copy(
        self, archive: zipfile.ZipFile, buffer: _ChunkBuffer, source, arcname: str, size: int
    ) -> Iterator[bytes]:
        with archive.open(arcname, "w", force_zip64=size > zipfile.ZIP64_LIMIT) as entry:
            while True:
                data = source.read(self.chunk_size)
                if not data:
                    break
                entry.write(data)
                chunk = buffer.drain()
                if chunk:
                    yield chunk

    @staticmethod
    def _walk(root: Path) -> Iterator[Path]:
        for current, dirnames, filenames in os.walk(root):
            dirnames.sort()
            base = Path(current)
            if base != root:
                yield base
            for name in sorted(filenames):
                path = base / name
                if path.is_symlink():
                    logger.warning("Skipping symlink %s", path)
                    continue
                yield path
