"""Project persistence backed by Redis."""

from __future__ import annotations

import json
import math
import uuid
from datetime import datetime, timezone
from typing import Mapping, Optional, Protocol

from redis import Redis

from ..core.exceptions import MissingPlace, ValidationError
from ..core.models import PLACE_CATEGORIES


class ProjectRepository(Protocol):
    """Read access needed by the export pipeline."""

    def fetch_project_by_id(self, project_id: str) -> Optional[dict]:
        ...


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _place_errors(place: object, path: str) -> list[str]:
    if not isinstance(place, Mapping):
        return [f"{path} must be an object"]

    errors = []
    if not isinstance(place.get("name"), str) or not place["name"].strip():
        errors.append(f"{path}.name is required")
    latitude, longitude = place.get("latitude"), place.get("longitude")
    if not _is_number(latitude) or abs(latitude) > 90:  # type: ignore[arg-type]
        errors.append(f"{path}.latitude must be a number between -90 and 90")
    if not _is_number(longitude) or abs(longitude) > 180:  # type: ignore[arg-type]
        errors.append(f"{path}.longitude must be a number between -180 and 180")
    if place.get("virtualtour") and place.get("tourUrl"):
        errors.append(f"{path} requires exactly one media: 360 image or tour URL")
    if place.get("category") is not None and place["category"] not in PLACE_CATEGORIES:
        errors.append(f"{path}.category must be one of {', '.join(PLACE_CATEGORIES)}")

    routes = place.get("routesFromBase")
    if routes is not None and (not isinstance(routes, list) or not all(isinstance(r, str) for r in routes)):
        errors.append(f"{path}.routesFromBase must be a list of strings")

    model = place.get("model3d")
    if model is not None:
        if not isinstance(model, Mapping):
            errors.append(f"{path}.model3d must be an object")
        elif model.get("rotation") is not None and (
            not isinstance(model["rotation"], list)
            or len(model["rotation"]) != 3
            or not all(_is_number(value) for value in model["rotation"])
        ):
            errors.append(f"{path}.model3d.rotation must hold three numbers")
    return errors


def validate_project(payload: object) -> dict:
    """Validate a full project payload and return it as a plain dict."""

    if not isinstance(payload, Mapping):
        raise ValidationError("Project payload must be a JSON object")

    errors = []
    if not isinstance(payload.get("title"), str) or not payload["title"].strip():
        errors.append("title is required")
    for key in ("description", "logoUrl", "styleURL"):
        if payload.get(key) is not None and not isinstance(payload[key], str):
            errors.append(f"{key} must be a string")
    if "principal" not in payload:
        errors.append("principal is required")
    else:
        errors.extend(_place_errors(payload["principal"], "principal"))

    secondaries = payload.get("secondaries", [])
    if not isinstance(secondaries, list):
        errors.append("secondaries must be a list")
    else:
        for index, place in enumerate(secondaries):
            errors.extend(_place_errors(place, f"secondaries[{index}]"))

    if errors:
        raise ValidationError("Project payload is invalid", details={"errors": errors})
    return dict(payload)


def _validated_place(payload: object) -> dict:
    errors = _place_errors(payload, "place")
    if errors:
        raise ValidationError("Place payload is invalid", details={"errors": errors})
    return dict(payload)  # type: ignore[arg-type]


class RedisProjectStore:
    """Store project documents as JSON strings in Redis."""

    def __init__(self, connection: Redis, *, prefix: str = "map-platform:project:"):
        self.connection = connection
        self.prefix = prefix

    @property
    def index_key(self) -> str:
        return f"{self.prefix}index"

    def _key(self, project_id: str) -> str:
        return f"{self.prefix}{project_id}"

    def fetch_project_by_id(self, project_id: str) -> Optional[dict]:
        raw = self.connection.get(self._key(project_id))
        if raw is None:
            return None
        return json.loads(raw)

    def create(self, payload: Mapping[str, object]) -> dict:
        document = validate_project(payload)
        now = datetime.now(timezone.utc)
        document["_id"] = uuid.uuid4().hex
        document["createdAt"] = document["updatedAt"] = now.isoformat()
        document.setdefault("secondaries", [])
        self._assign_place_ids(document)
        self.connection.set(self._key(document["_id"]), json.dumps(document))
        self.connection.zadd(self.index_key, {document["_id"]: now.timestamp()})
        return document

    def update(self, project_id: str, changes: Mapping[str, object]) -> Optional[dict]:
        current = self.fetch_project_by_id(project_id)
        if current is None:
            return None
        if not isinstance(changes, Mapping):
            raise ValidationError("Project payload must be a JSON object")

        merged = {**current, **{k: v for k, v in changes.items() if k not in ("_id", "createdAt")}}
        document = validate_project(merged)
        self._assign_place_ids(document)
        self._save(project_id, document)
        return document

    def delete(self, project_id: str) -> bool:
        removed = self.connection.delete(self._key(project_id))
        self.connection.zrem(self.index_key, project_id)
        return bool(removed)

    def list(self) -> list[dict]:
        summaries = []
        for raw_id in self.connection.zrevrange(self.index_key, 0, -1):
            project_id = raw_id.decode() if isinstance(raw_id, bytes) else str(raw_id)
            document = self.fetch_project_by_id(project_id)
            if document is None:
                continue
            summaries.append(
                {
                    "_id": project_id,
                    "title": document.get("title"),
                    "createdAt": document.get("createdAt"),
                    "updatedAt": document.get("updatedAt"),
                }
            )
        return summaries

    def add_place(self, project_id: str, payload: object) -> Optional[dict]:
        """Append a secondary place; return the updated project."""

        document = self.fetch_project_by_id(project_id)
        if document is None:
            return None
        place = _validated_place({**payload, "category": "Secondary"} if isinstance(payload, Mapping) else payload)
        place.setdefault("_id", uuid.uuid4().hex)
        document.setdefault("secondaries", []).append(place)
        self._save(project_id, document)
        return document

    def update_place(self, project_id: str, place_id: str, changes: object) -> Optional[dict]:
        """Merge ``changes`` into a secondary place and return that place."""

        document = self.fetch_project_by_id(project_id)
        if document is None:
            return None
        if not isinstance(changes, Mapping):
            raise ValidationError("Place payload must be a JSON object")

        secondaries = document.get("secondaries", [])
        index = self._place_index(secondaries, place_id)
        merged = {**secondaries[index], **{k: v for k, v in changes.items() if k != "_id"}}
        secondaries[index] = _validated_place(merged)
        self._save(project_id, document)
        return secondaries[index]

    def delete_place(self, project_id: str, place_id: str) -> Optional[bool]:
        document = self.fetch_project_by_id(project_id)
        if document is None:
            return None
        secondaries = document.get("secondaries", [])
        del secondaries[self._place_index(secondaries, place_id)]
        self._save(project_id, document)
        return True

    def _save(self, project_id: str, document: dict) -> None:
        document["updatedAt"] = datetime.now(timezone.utc).isoformat()
        self.connection.set(self._key(project_id), json.dumps(document))

    @staticmethod
    def _place_index(secondaries: list, place_id: str) -> int:
        for index, place in enumerate(secondaries):
            if isinstance(place, Mapping) and place.get("_id") == place_id:
                return index
        raise MissingPlace("Place not found", details={"place": place_id})

    @staticmethod
    def _assign_place_ids(document: dict) -> None:
        places = [document["principal"], *document.get("secondaries", [])]
        for place in places:
            place.setdefault("_id", uuid.uuid4().hex)
