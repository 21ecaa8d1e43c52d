"""Page template loading and placeholder substitution."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from ..core.exceptions import ExportError
from ..utils import detect_encoding

PAGE_TEMPLATE = "map.html"
SCRIPT_TEMPLATE = "app.js"
STYLESHEET_TEMPLATE = "styles.css"

PLACEHOLDERS = ("{{TITLE}}", "{{LIB_STYLES}}", "{{LIB_SCRIPTS}}", "{{INLINE_DATA}}", "{{HEADER_LOGO}}")


@dataclass(slots=True)
class BundleTemplates:
    page: str
    script: str
    stylesheet: str


class TemplateSource:
    """Read the page shell, bootstrap script and stylesheet from a directory."""

    def __init__(self, directory: Path | str, *, encoding: str = "utf-8"):
        self.directory = Path(directory)
        self.encoding = encoding

    def load(self) -> BundleTemplates:
        return BundleTemplates(
            page=self._read(PAGE_TEMPLATE),
            script=self._read(SCRIPT_TEMPLATE),
            stylesheet=self._read(STYLESHEET_TEMPLATE),
        )

    def _read(self, name: str) -> str:
        path = self.directory / name
        if not path.exists():
            raise ExportError(f"Template not found: {path}")

        encoding = self.encoding
        if encoding == "auto":
            encoding = detect_encoding(path)
        return path.read_text(encoding=encoding, errors="replace")


_PLACEHOLDER_PATTERN = re.compile("|".join(re.escape(name) for name in PLACEHOLDERS))


def render(template: str, values: Mapping[str, str]) -> str:
    """Replace every ``{{NAME}}`` placeholder literally, in a single pass.

    Substituted values are never scanned again, so user text that happens to
    contain a placeholder is left alone.
    """

    return _PLACEHOLDER_PATTERN.sub(lambda match: values.get(match.group(0)[2:-2], ""), template)
