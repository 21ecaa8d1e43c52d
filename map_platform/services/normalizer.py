"""Map stored project documents onto the public export schema."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Mapping, Sequence

from ..core import (
    ExportDocument,
    ExportOptions,
    FooterInfo,
    InvalidPlace,
    Logo,
    Media,
    MissingPrincipal,
    MissingProject,
    Model3D,
    PanoramaMedia,
    Place,
    ProjectInfo,
    Route,
    TourMedia,
)
from ..core.models import DEFAULT_PROFILE, PLACE_CATEGORIES
from ..utils import is_valid_coordinate, parse_distance_meters, parse_duration_seconds
from . import polyline

logger = logging.getLogger(__name__)

SATELLITE_STYLE = "satellite"
DEFAULT_VECTOR_STYLE_URL = "https://demotiles.maplibre.org/style.json"


def resolve_style(*candidates: str | None) -> str:
    """Return the first populated style reference."""

    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return DEFAULT_VECTOR_STYLE_URL


def _optional_float(value: object) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _text(value: object) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class ProjectNormalizer:
    """Build :class:`ExportDocument` instances from stored documents."""

    def __init__(
        self,
        *,
        default_style: str | None = SATELLITE_STYLE,
        generator_name: str = "map-platform-export",
        generator_version: str = "1.0.0",
    ):
        self.default_style = default_style
        self.generator_name = generator_name
        self.generator_version = generator_version

    def normalize(
        self,
        document: Mapping[str, object] | None,
        options: ExportOptions | None = None,
    ) -> ExportDocument:
        if document is None:
            raise MissingProject("Project not found")
        principal_doc = document.get("principal")
        if not principal_doc or not isinstance(principal_doc, Mapping):
            raise MissingPrincipal("Project has no principal place", details={"project": _text(document.get("_id"))})

        options = options or ExportOptions()
        principal = self._place(principal_doc, fallback_id="principal", category="Principal")
        secondaries = [
            self._secondary(raw, index, options.profiles)
            for index, raw in enumerate(document.get("secondaries") or [])
        ]

        title = _text(document.get("title")) or "Untitled project"
        logo_url = _text(document.get("logoUrl"))
        project = ProjectInfo(
            id=str(document.get("_id") or ""),
            title=title,
            description=str(document.get("description") or ""),
            style_url=resolve_style(options.style_url, document.get("styleURL"), self.default_style),
            logo=Logo(src=logo_url, alt=title) if logo_url else None,
        )

        return ExportDocument(
            project=project,
            principal=principal,
            secondaries=secondaries,
            generated_at=datetime.now(timezone.utc),
            generator_name=self.generator_name,
            generator_version=self.generator_version,
        )

    def _secondary(self, raw: object, index: int, profiles: Sequence[str]) -> Place:
        if not isinstance(raw, Mapping):
            raise InvalidPlace("Secondary place must be an object", details={"place": f"secondary-{index}"})
        place = self._place(raw, fallback_id=f"secondary-{index}")
        distance_m = parse_distance_meters(place.footer.distance_text)
        duration_s = parse_duration_seconds(place.footer.time_text)

        for route_index, encoded in enumerate(raw.get("routesFromBase") or []):
            coordinates = polyline.decode(encoded)
            if len(coordinates) < 2:
                logger.info("Dropping route %s of place %s: fewer than 2 points", route_index, place.id)
                continue
            profile = profiles[route_index] if route_index < len(profiles) else None
            place.routes.append(
                Route(
                    profile=profile or (profiles[0] if profiles else DEFAULT_PROFILE),
                    coordinates=coordinates,
                    distance_m=distance_m,
                    duration_s=duration_s,
                )
            )
        return place

    def _place(self, raw: Mapping[str, object], *, fallback_id: str, category: str | None = None) -> Place:
        identifier = str(raw.get("_id") or raw.get("id") or fallback_id)
        lat = _optional_float(raw.get("latitude"))
        lon = _optional_float(raw.get("longitude"))
        if lat is None or lon is None or not is_valid_coordinate(lat, lon):
            raise InvalidPlace(
                "Place coordinates are missing or out of range",
                details={"place": identifier, "latitude": raw.get("latitude"), "longitude": raw.get("longitude")},
            )

        if category is None:
            stored = raw.get("category")
            if not stored:
                category = "Secondary"
            else:
                category = stored if stored in PLACE_CATEGORIES else "Other"

        footer = raw.get("footerInfo")
        if not isinstance(footer, Mapping):
            footer = {}
        return Place(
            id=identifier,
            name=str(raw.get("name") or ""),
            lat=lat,
            lon=lon,
            category=category,
            media=self._media(raw, identifier),
            heading=_optional_float(raw.get("heading")),
            zoom=_optional_float(raw.get("zoom")),
            bounds=raw.get("bounds") or None,
            model3d=self._model(raw.get("model3d")),
            footer=FooterInfo(
                location=_text(footer.get("location")),
                distance_text=_text(footer.get("distance")),
                time_text=_text(footer.get("time")),
            ),
        )

    @staticmethod
    def _media(raw: Mapping[str, object], identifier: str) -> Media | None:
        panorama = _text(raw.get("virtualtour"))
        tour = _text(raw.get("tourUrl"))
        if panorama and tour:
            logger.warning("Place %s has both a panorama and a tour; keeping the panorama", identifier)
        if panorama:
            return PanoramaMedia(url=panorama)
        if tour:
            return TourMedia(url=tour)
        return None

    @staticmethod
    def _model(raw: object) -> Model3D | None:
        if not isinstance(raw, Mapping) or not _text(raw.get("url")):
            return None

        rotation = raw.get("rotation")
        if isinstance(rotation, (list, tuple)) and len(rotation) == 3:
            parsed = tuple(_optional_float(value) or 0.0 for value in rotation)
        else:
            parsed = (0.0, 0.0, 0.0)

        scale = _optional_float(raw.get("scale"))
        return Model3D(
            url=_text(raw.get("url")),  # type: ignore[arg-type]
            use_as_marker=bool(raw.get("useAsMarker", False)),
            scale=scale if scale is not None else 1.0,
            rotation=parsed,  # type: ignore[arg-type]
            altitude=_optional_float(raw.get("altitude")) or 0.0,
        )
