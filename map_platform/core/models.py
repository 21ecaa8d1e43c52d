"""Domain models used throughout the map platform exporter."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Mapping, Sequence, Union

from .exceptions import InvalidOptions

DEFAULT_PROFILE = "driving"
PLACE_CATEGORIES = ("Principal", "Secondary", "Other")


@dataclass(slots=True)
class PanoramaMedia:
    """A 360 degree equirectangular image."""

    url: str

    def as_dict(self) -> dict:
        return {"type": "panorama", "panoramaUrl": self.url}


@dataclass(slots=True)
class TourMedia:
    """An externally hosted virtual tour."""

    url: str

    def as_dict(self) -> dict:
        return {"type": "tour", "tourUrl": self.url}


Media = Union[PanoramaMedia, TourMedia]


@dataclass(slots=True)
class Model3D:
    """A glTF model rendered at a place."""

    url: str
    use_as_marker: bool = False
    scale: float = 1.0
    rotation: tuple[float, float, float] = (0.0, 0.0, 0.0)
    altitude: float = 0.0

    def as_dict(self) -> dict:
        return {
            "url": self.url,
            "useAsMarker": self.use_as_marker,
            "scale": self.scale,
            "rotation": list(self.rotation),
            "altitude": self.altitude,
        }


@dataclass(slots=True)
class Route:
    """A decoded route from the principal place."""

    profile: str
    coordinates: list[tuple[float, float]]
    distance_m: float | None = None
    duration_s: float | None = None

    def as_dict(self) -> dict:
        return {
            "profile": self.profile,
            "distance_m": self.distance_m,
            "duration_s": self.duration_s,
            "geometry": {
                "type": "LineString",
                "coordinates": [[lon, lat] for lon, lat in self.coordinates],
            },
        }


@dataclass(slots=True)
class FooterInfo:
    location: str | None = None
    distance_text: str | None = None
    time_text: str | None = None

    def as_dict(self, *, include_travel: bool = True) -> dict:
        payload: dict = {"location": self.location}
        if include_travel:
            payload["distanceText"] = self.distance_text
            payload["timeText"] = self.time_text
        return payload


@dataclass(slots=True)
class Place:
    """A principal or secondary location in its public export form."""

    id: str
    name: str
    lat: float
    lon: float
    category: str
    media: Media | None = None
    heading: float | None = None
    zoom: float | None = None
    bounds: list | None = None
    model3d: Model3D | None = None
    footer: FooterInfo = field(default_factory=FooterInfo)
    routes: list[Route] = field(default_factory=list)
    gallery: list = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "lat": self.lat,
            "lon": self.lon,
            "heading": self.heading,
            "zoom": self.zoom,
            "bounds": self.bounds,
            "category": self.category,
            "media": self.media.as_dict() if self.media else None,
            "model3d": self.model3d.as_dict() if self.model3d else None,
            "gallery": list(self.gallery),
            "footerInfo": self.footer.as_dict(include_travel=self.category != "Principal"),
            "routes": [route.as_dict() for route in self.routes],
        }


@dataclass(slots=True)
class Logo:
    src: str
    alt: str
    srcset: str | None = None

    def as_dict(self) -> dict:
        payload = {"src": self.src, "alt": self.alt}
        if self.srcset:
            payload["srcset"] = self.srcset
        return payload


@dataclass(slots=True)
class ProjectInfo:
    id: str
    title: str
    description: str
    style_url: str
    logo: Logo | None = None
    units: str = "metric"
    style: dict | None = None

    def as_dict(self) -> dict:
        payload = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "styleURL": self.style_url,
            "logo": self.logo.as_dict() if self.logo else None,
            "units": self.units,
        }
        if self.style is not None:
            payload["style"] = self.style
        return payload


@dataclass(slots=True)
class ExportDocument:
    """The public schema consumed by the exported bundle."""

    project: ProjectInfo
    principal: Place
    secondaries: list[Place]
    generated_at: datetime
    generator_name: str
    generator_version: str

    def places(self) -> Iterator[Place]:
        yield self.principal
        yield from self.secondaries

    def has_models(self) -> bool:
        return any(place.model3d for place in self.places())

    def as_dict(self) -> dict:
        return {
            "project": self.project.as_dict(),
            "principal": self.principal.as_dict(),
            "secondaries": [place.as_dict() for place in self.secondaries],
            "generatedAt": self.generated_at.isoformat(),
            "generator": {"name": self.generator_name, "version": self.generator_version},
        }


@dataclass(frozen=True)
class ExportOptions:
    """Validated per-call export options."""

    inline_data: bool = False
    inline_assets: bool = True
    include_local_libs: bool = True
    style_url: str | None = None
    profiles: tuple[str, ...] = (DEFAULT_PROFILE,)

    @classmethod
    def from_mapping(
        cls, payload: Mapping[str, object] | None, *, default_profile: str = DEFAULT_PROFILE
    ) -> "ExportOptions":
        """Build options from a request body using the public camelCase keys."""

        payload = payload or {}
        if not isinstance(payload, Mapping):
            raise InvalidOptions("Export options must be a JSON object")

        def flag(key: str, default: bool, *aliases: str) -> bool:
            for name in (key, *aliases):
                if name in payload:
                    value = payload[name]
                    if not isinstance(value, bool):
                        raise InvalidOptions(f"{name} must be a boolean", details={"field": name})
                    return value
            return default

        style_url = payload.get("styleURL")
        if style_url is not None and not isinstance(style_url, str):
            raise InvalidOptions("styleURL must be a string", details={"field": "styleURL"})

        profiles = payload.get("profiles")
        if profiles is None:
            parsed_profiles: Sequence[str] = (default_profile,)
        elif isinstance(profiles, list) and all(isinstance(item, str) and item for item in profiles):
            parsed_profiles = profiles
        else:
            raise InvalidOptions("profiles must be a list of non-empty strings", details={"field": "profiles"})

        return cls(
            inline_data=flag("inlineData", False),
            inline_assets=flag("inlineAssets", True, "mirrorImagesLocally"),
            include_local_libs=flag("includeLocalLibs", True),
            style_url=style_url or None,
            profiles=tuple(parsed_profiles),
        )
