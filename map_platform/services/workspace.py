"""Per-export temporary directory."""

from __future__ import annotations

import logging
import shutil
import tempfile
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


class Workspace:
    """A uniquely named directory owned by a single export call.

    :meth:`cleanup` may be wired to several lifecycle hooks; the directory is
    removed on the first call and later calls do nothing.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._cleaned = False

    @classmethod
    def create(cls, root: Path | str | None = None, *, prefix: str = "export-") -> "Workspace":
        if root is not None:
            Path(root).mkdir(parents=True, exist_ok=True)
        path = tempfile.mkdtemp(prefix=prefix, dir=str(root) if root is not None else None)
        logger.debug("Created workspace %s", path)
        return cls(Path(path))

    @property
    def cleaned(self) -> bool:
        return self._cleaned

    def mkdir(self, relative: str) -> Path:
        directory = self.path / relative
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def cleanup(self) -> bool:
        """Remove the directory tree; return ``True`` if this call removed it."""

        with self._lock:
            if self._cleaned:
                return False
            self._cleaned = True
        shutil.rmtree(self.path, ignore_errors=True)
        logger.debug("Removed workspace %s", self.path)
        return True
