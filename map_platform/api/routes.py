"""REST API blueprint."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from flask import Blueprint, Response, current_app, jsonify, request, send_file
from rq.exceptions import NoSuchJobError
from rq.job import Job

from ..config import STORAGE_PATHS
from ..core import ExportError, MissingProject

api_bp = Blueprint("api", __name__)


@api_bp.errorhandler(ExportError)
def handle_export_error(exc: ExportError):
    return jsonify(exc.as_dict()), exc.status_code


@api_bp.post("/projects")
def create_project():
    project = _store().create(request.get_json(silent=True))
    return jsonify(project), 201


@api_bp.get("/projects")
def list_projects():
    return jsonify(_store().list())


@api_bp.get("/projects/<project_id>")
def get_project(project_id: str):
    project = _store().fetch_project_by_id(project_id)
    if project is None:
        return jsonify({"error": "NotFound"}), 404
    return jsonify(project)


@api_bp.put("/projects/<project_id>")
def update_project(project_id: str):
    project = _store().update(project_id, request.get_json(silent=True))
    if project is None:
        return jsonify({"error": "NotFound"}), 404
    return jsonify(project)


@api_bp.delete("/projects/<project_id>")
def delete_project(project_id: str):
    if not _store().delete(project_id):
        return jsonify({"error": "NotFound"}), 404
    return jsonify({"ok": True})


@api_bp.post("/projects/<project_id>/places")
def add_place(project_id: str):
    project = _store().add_place(project_id, request.get_json(silent=True))
    if project is None:
        return jsonify({"error": "NotFound"}), 404
    return jsonify(project), 201


@api_bp.put("/projects/<project_id>/places/<place_id>")
def update_place(project_id: str, place_id: str):
    place = _store().update_place(project_id, place_id, request.get_json(silent=True))
    if place is None:
        return jsonify({"error": "NotFound"}), 404
    return jsonify(place)


@api_bp.delete("/projects/<project_id>/places/<place_id>")
def delete_place(project_id: str, place_id: str):
    if _store().delete_place(project_id, place_id) is None:
        return jsonify({"error": "NotFound"}), 404
    return jsonify({"ok": True})


@api_bp.post("/projects/<project_id>/export")
def export_project(project_id: str):
    """Stream the static bundle of a project as a ZIP download."""

    pipeline = _pipeline()
    stream = pipeline.run(project_id, pipeline.options(request.get_json(silent=True)))

    response = Response(stream, status=200, headers=stream.headers)
    response.call_on_close(stream.close)
    return response


@api_bp.post("/projects/<project_id>/exports")
def create_export_job(project_id: str):
    """Queue a background export whose archive is kept under the outputs directory."""

    payload = request.get_json(silent=True) or {}
    _pipeline().options(payload)
    if _store().fetch_project_by_id(project_id) is None:
        raise MissingProject("Project not found", details={"project": project_id})

    job_id = str(uuid.uuid4())
    created_at = datetime.now(timezone.utc).isoformat()
    job = _queue().enqueue(
        "map_platform.tasks.export_project_job",
        kwargs={"project_id": project_id, "options": payload},
        job_id=job_id,
        meta={"created_at": created_at, "project_id": project_id},
    )

    response = {
        "job_id": job.id,
        "status": job.get_status(refresh=False),
        "created_at": created_at,
    }
    return jsonify(response), 202


@api_bp.get("/jobs/<job_id>")
def job_status(job_id: str):
    job = _fetch_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    payload: dict[str, object] = {
        "job_id": job.id,
        "status": job.get_status(refresh=True),
        "created_at": job.meta.get("created_at"),
    }

    if job.is_finished:
        payload["result"] = job.result or {}
        return jsonify(payload), 200
    if job.is_failed:
        payload["error"] = job.meta.get("error", job.exc_info)
        return jsonify(payload), 500

    payload["progress"] = job.meta.get("progress", 0)
    return jsonify(payload), 200


@api_bp.get("/jobs/<job_id>/download")
def download_export(job_id: str):
    job = _fetch_job(job_id)
    if job is None or not job.is_finished or not job.result:
        return jsonify({"error": "Export not available"}), 404

    output_dir = (STORAGE_PATHS.outputs / job.id).resolve()
    archive = (output_dir / job.result["filename"]).resolve()
    if archive.parent != output_dir or not archive.is_file():
        return jsonify({"error": "Export not available"}), 404
    return send_file(archive, mimetype="application/zip", as_attachment=True, download_name=archive.name)


def _fetch_job(job_id: str) -> Job | None:
    try:
        return Job.fetch(job_id, connection=_extensions()["connection"])
    except NoSuchJobError:
        return None


def _extensions() -> dict:
    return current_app.extensions["map_platform"]


def _store():
    return _extensions()["store"]


def _pipeline():
    return _extensions()["pipeline"]


def _queue():
    return _extensions()["queue"]
