"""Tests for the model manager."""

import io
import logging
import types

import pytest

from semsearch.gateway.types import LoadingProgress, LoadingStatus

from .lib import ModelManager, get_model_manager, make_progress_bar


class RecordingSentenceTransformer:
    """Captures constructor arguments in place of the real model class."""

    instances: list["RecordingSentenceTransformer"] = []

    def __init__(self, path, device=None, model_kwargs=None):
        self.path = path
        self.device = device or "cpu"
        self.model_kwargs = model_kwargs
        RecordingSentenceTransformer.instances.append(self)


@pytest.fixture
def fake_sentence_transformers(monkeypatch):
    RecordingSentenceTransformer.instances = []
    module = types.ModuleType("sentence_transformers")
    module.SentenceTransformer = RecordingSentenceTransformer
    monkeypatch.setitem(__import__("sys").modules, "sentence_transformers", module)
    return module


class TestProgressBar:
    """Tests for the reporting tqdm class."""

    @pytest.mark.unit
    def test_reports_percentages(self):
        updates: list[LoadingProgress] = []
        bar_cls = make_progress_bar("org/model", updates.append)

        bar = bar_cls(total=4, file=io.StringIO(), mininterval=0, disable=False)
        bar.update(1)
        bar.update(3)
        bar.close()

        assert updates
        assert all(u.status is LoadingStatus.PROGRESS for u in updates)
        assert all(u.file == "org/model" for u in updates)
        assert updates[-1].progress == pytest.approx(100.0)
        assert any(u.progress == pytest.approx(25.0) for u in updates)


class TestModelManager:
    """Tests for ModelManager download and load."""

    @pytest.mark.unit
    def test_models_dir_override(self, tmp_path):
        manager = ModelManager(tmp_path / "models")
        assert manager.models_dir == tmp_path / "models"

    @pytest.mark.unit
    def test_download_uses_local_directory(self, tmp_path):
        local_model = tmp_path / "my-model"
        local_model.mkdir()
        updates = []

        path = ModelManager(tmp_path / "cache").download(str(local_model), updates.append)

        assert path == local_model
        assert [u.status for u in updates] == [LoadingStatus.DONE]

    @pytest.mark.unit
    def test_download_logs_under_package_logger(self, tmp_path, caplog):
        local_model = tmp_path / "my-model"
        local_model.mkdir()

        with caplog.at_level(logging.INFO, logger="semsearch"):
            ModelManager(tmp_path / "cache").download(str(local_model))

        assert any(
            r.name == "semsearch.gateway.models" and "local model directory" in r.getMessage()
            for r in caplog.records
        )

    @pytest.mark.unit
    def test_download_fetches_snapshot(self, tmp_path, monkeypatch):
        import huggingface_hub

        calls = {}

        def fake_snapshot_download(repo_id, cache_dir, tqdm_class):
            calls.update(repo_id=repo_id, cache_dir=cache_dir, tqdm_class=tqdm_class)
            return str(tmp_path / "snapshot")

        monkeypatch.setattr(huggingface_hub, "snapshot_download", fake_snapshot_download)
        updates = []
        manager = ModelManager(tmp_path / "cache")

        path = manager.download("org/model", updates.append)

        assert path == tmp_path / "snapshot"
        assert calls["repo_id"] == "org/model"
        assert calls["cache_dir"] == str(tmp_path / "cache")
        assert calls["tqdm_class"] is not None
        assert (tmp_path / "cache").is_dir()
        assert [u.status for u in updates] == [LoadingStatus.DOWNLOAD, LoadingStatus.DONE]

    @pytest.mark.unit
    def test_download_without_callback_uses_default_bar(self, tmp_path, monkeypatch):
        import huggingface_hub

        seen = {}

        def fake_snapshot_download(repo_id, cache_dir, tqdm_class):
            seen["tqdm_class"] = tqdm_class
            return str(tmp_path)

        monkeypatch.setattr(huggingface_hub, "snapshot_download", fake_snapshot_download)
        ModelManager(tmp_path / "cache").download("org/model")
        assert seen["tqdm_class"] is None

    @pytest.mark.unit
    def test_load_builds_and_caches(self, tmp_path, fake_sentence_transformers):
        local_model = tmp_path / "gemma"
        local_model.mkdir()
        manager = ModelManager(tmp_path / "cache")
        updates = []

        first = manager.load(str(local_model), device="cpu", dtype="bfloat16", progress_callback=updates.append)
        second = manager.load(str(local_model), device="cpu", dtype="bfloat16")

        assert first is second
        assert len(RecordingSentenceTransformer.instances) == 1
        assert first.path == str(local_model)
        assert first.model_kwargs == {"torch_dtype": "bfloat16"}
        assert [u.status for u in updates] == [
            LoadingStatus.INITIATE,
            LoadingStatus.DONE,
            LoadingStatus.READY,
        ]

    @pytest.mark.unit
    def test_load_without_dtype(self, tmp_path, fake_sentence_transformers):
        local_model = tmp_path / "gemma"
        local_model.mkdir()
        model = ModelManager(tmp_path / "cache").load(str(local_model))
        assert model.model_kwargs is None


class TestGetModelManager:
    """Tests for the shared manager accessor."""

    @pytest.mark.unit
    def test_returns_same_instance(self):
        assert get_model_manager() is get_model_manager()
