from __future__ import annotations

import dataclasses
import zipfile

import pytest

import map_platform.tasks as tasks
from map_platform.core import MissingProject
from map_platform.pipelines import ExportPipeline


@pytest.fixture()
def pipeline(store, normalizer, make_assembler, streamer, monkeypatch, tmp_path) -> ExportPipeline:
    pipeline = ExportPipeline(repository=store, normalizer=normalizer, assembler=make_assembler(), streamer=streamer)
    monkeypatch.setattr(ExportPipeline, "default", classmethod(lambda cls, repository: pipeline))
    monkeypatch.setattr(tasks, "STORAGE_PATHS", dataclasses.replace(tasks.STORAGE_PATHS, outputs=tmp_path / "outputs"))
    return pipeline


def test_job_writes_archive_to_outputs(pipeline, store, project_document, workspace_root, tmp_path):
    project = store.create(project_document)

    result = tasks.export_project_job(project_id=project["_id"], options={"inlineData": True})

    archive = tmp_path / "outputs" / project["_id"] / result["filename"]
    assert result["path"] == str(archive)
    with zipfile.ZipFile(archive) as bundle:
        assert "map.html" in bundle.namelist()
        assert "data/project.json" not in bundle.namelist()
    assert [path.name for path in archive.parent.iterdir()] == [result["filename"]]
    assert list(workspace_root.iterdir()) == []


def test_job_propagates_export_errors(pipeline, workspace_root):
    with pytest.raises(MissingProject):
        tasks.export_project_job(project_id="unknown")

    assert list(workspace_root.iterdir()) == []
