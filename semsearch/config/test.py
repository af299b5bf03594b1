"""Tests for configuration management."""

import logging

import pytest

from .lib import (
    EnvConfig,
    EnvVar,
    _find_repo_root,
    get_debounce_seconds,
    get_environment,
    get_environment_info,
    get_log_level,
    get_models_dir,
    list_environment_variables,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("QUERY_DEBOUNCE_MS", raising=False)
        result = get_environment(EnvVar.QUERY_DEBOUNCE_MS)
        assert result == 300

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("QUERY_DEBOUNCE_MS", "999")
        result = get_environment(EnvVar.QUERY_DEBOUNCE_MS, override=50)
        assert result == 50

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("QUERY_DEBOUNCE_MS", "125")
        result = get_environment(EnvVar.QUERY_DEBOUNCE_MS)
        assert result == 125
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_invalid_int_returns_default(self, monkeypatch):
        """Invalid integer value returns default."""
        monkeypatch.setenv("QUERY_DEBOUNCE_MS", "not-a-number")
        result = get_environment(EnvVar.QUERY_DEBOUNCE_MS)
        assert result == 300

    @pytest.mark.unit
    def test_string_type(self, monkeypatch):
        """String type returns as-is."""
        monkeypatch.setenv("EMBEDDING_DEVICE", "cpu")
        result = get_environment(EnvVar.EMBEDDING_DEVICE)
        assert result == "cpu"

    @pytest.mark.unit
    def test_none_default_for_device(self, monkeypatch):
        """Device defaults to None (auto-detect) when not set."""
        monkeypatch.delenv("EMBEDDING_DEVICE", raising=False)
        assert get_environment(EnvVar.EMBEDDING_DEVICE) is None

    @pytest.mark.unit
    def test_empty_value_uses_default(self, monkeypatch):
        """Empty strings are treated as unset."""
        monkeypatch.setenv("EMBEDDING_DTYPE", "")
        assert get_environment(EnvVar.EMBEDDING_DTYPE) == "float32"

    @pytest.mark.unit
    def test_path_type_conversion(self, tmp_path, monkeypatch):
        """Path variables are converted to Path objects."""
        monkeypatch.setenv("EMBEDDING_MODELS_DIR", str(tmp_path))
        assert get_environment(EnvVar.EMBEDDING_MODELS_DIR) == tmp_path


class TestGetEnvironmentInfo:
    """Tests for environment variable metadata."""

    @pytest.mark.unit
    def test_returns_env_config(self):
        """Returns EnvConfig dataclass."""
        info = get_environment_info(EnvVar.QUERY_DEBOUNCE_MS)
        assert isinstance(info, EnvConfig)
        assert info.name == "QUERY_DEBOUNCE_MS"
        assert info.default == 300
        assert info.var_type is int
        assert info.category == "session"

    @pytest.mark.unit
    def test_description_present(self):
        """Description field is populated."""
        info = get_environment_info(EnvVar.EMBEDDING_MODEL_ID)
        assert "model" in info.description


class TestListEnvironmentVariables:
    """Tests for listing environment variables."""

    @pytest.mark.unit
    def test_returns_all_variables(self):
        """Returns all EnvVar members when no category."""
        result = list_environment_variables()
        assert len(result) == len(EnvVar)

    @pytest.mark.unit
    def test_filter_by_category(self):
        """Filters by category correctly."""
        embedding_vars = list_environment_variables("embedding")
        assert EnvVar.EMBEDDING_MODEL_ID in embedding_vars
        assert EnvVar.EMBEDDING_DEVICE in embedding_vars
        assert EnvVar.QUERY_DEBOUNCE_MS not in embedding_vars


# =============================================================================
# Tests for convenience functions
# =============================================================================


class TestGetModelsDir:
    """Tests for models directory resolution."""

    @pytest.mark.unit
    def test_override_takes_priority(self, tmp_path, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("EMBEDDING_MODELS_DIR", str(tmp_path / "env"))
        custom_path = tmp_path / "custom_models"
        assert get_models_dir(custom_path) == custom_path

    @pytest.mark.unit
    def test_string_override(self, tmp_path):
        """Override parameter accepts string paths."""
        custom_path = tmp_path / "custom_string"
        assert get_models_dir(str(custom_path)) == custom_path

    @pytest.mark.unit
    def test_env_var_used(self, tmp_path, monkeypatch):
        """EMBEDDING_MODELS_DIR env var used when no override."""
        env_path = tmp_path / "models_from_env"
        monkeypatch.setenv("EMBEDDING_MODELS_DIR", str(env_path))
        assert get_models_dir() == env_path

    @pytest.mark.unit
    def test_default_finds_repo_root(self, tmp_path, monkeypatch):
        """Default behavior finds repo root and returns .semsearch/models."""
        repo_root = tmp_path / "fake_repo"
        subdir = repo_root / "pkg" / "sub"
        subdir.mkdir(parents=True)
        (repo_root / ".gitignore").touch()
        monkeypatch.chdir(subdir)
        monkeypatch.delenv("EMBEDDING_MODELS_DIR", raising=False)

        assert get_models_dir() == repo_root.resolve() / ".semsearch" / "models"


class TestGetDebounceSeconds:
    """Tests for debounce delay resolution."""

    @pytest.mark.unit
    def test_default_is_300ms(self, monkeypatch):
        monkeypatch.delenv("QUERY_DEBOUNCE_MS", raising=False)
        assert get_debounce_seconds() == pytest.approx(0.3)

    @pytest.mark.unit
    def test_override(self):
        assert get_debounce_seconds(20) == pytest.approx(0.02)

    @pytest.mark.unit
    def test_negative_clamped(self):
        assert get_debounce_seconds(-5) == 0.0


class TestGetLogLevel:
    """Tests for log level resolution."""

    @pytest.mark.unit
    def test_named_level(self, monkeypatch):
        monkeypatch.setenv("SEMSEARCH_LOG_LEVEL", "debug")
        assert get_log_level() == logging.DEBUG

    @pytest.mark.unit
    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("SEMSEARCH_LOG_LEVEL", "chatty")
        assert get_log_level() == logging.INFO


# =============================================================================
# Tests for repository root detection
# =============================================================================


class TestFindRepoRoot:
    """Tests for repository root detection."""

    @pytest.mark.unit
    def test_from_cwd(self, tmp_path, monkeypatch):
        """Finds .gitignore from current directory."""
        repo_root = tmp_path / "test_repo"
        repo_root.mkdir()
        (repo_root / ".gitignore").touch()
        monkeypatch.chdir(repo_root)

        assert _find_repo_root() == repo_root.resolve()

    @pytest.mark.unit
    def test_from_subdirectory(self, tmp_path):
        """Walks up from subdirectory."""
        repo_root = tmp_path / "repo"
        deep_subdir = repo_root / "a" / "b" / "c"
        deep_subdir.mkdir(parents=True)
        (repo_root / ".gitignore").touch()

        assert _find_repo_root(start_path=deep_subdir) == repo_root.resolve()

    @pytest.mark.unit
    def test_not_found_falls_back_to_start(self, tmp_path):
        """Start directory is returned when no .gitignore exists above it."""
        no_repo = (tmp_path / "not_a_repo").resolve()
        no_repo.mkdir()
        if any((parent / ".gitignore").exists() for parent in no_repo.parents):
            pytest.skip("temporary directory lives inside a repository")

        assert _find_repo_root(start_path=no_repo) == no_repo
