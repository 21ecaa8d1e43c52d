"""RQ task definitions for background exports."""

from __future__ import annotations

from redis import Redis
from rq import get_current_job

from .config import QUEUE_CONFIG, STORAGE_PATHS
from .core.exceptions import ExportError
from .pipelines import ExportPipeline
from .services import RedisProjectStore
from .utils import ensure_directory


def export_project_job(*, project_id: str, options: dict | None = None) -> dict:
    """Export a project into the outputs directory of the current job."""

    job = get_current_job()
    if job:
        job.meta["progress"] = 0
        job.save_meta()

    connection = job.connection if job else Redis.from_url(QUEUE_CONFIG.redis_url)
    pipeline = ExportPipeline.default(RedisProjectStore(connection))
    job_id = job.id if job else project_id

    output_dir = ensure_directory(STORAGE_PATHS.outputs / job_id)
    try:
        stream = pipeline.run(project_id, options)
        archive_path = stream.write_to(output_dir / stream.filename)
    except ExportError as exc:
        if job:
            job.meta["error"] = exc.as_dict()
            job.save_meta()
        raise

    if job:
        job.meta["progress"] = 100
        job.save_meta()

    return {"project_id": project_id, "filename": archive_path.name, "path": str(archive_path)}
