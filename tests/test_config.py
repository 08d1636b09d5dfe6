"""Tests for config.py -- defaults, env var overrides, owner pairing."""

import pytest
from pydantic import ValidationError

from book_manager.config import ManagerConfig
from book_manager.models import Owner

# Env vars that pydantic-settings reads -- must be cleaned for default tests
_CONFIG_ENV_VARS = [
    "WATCH_PATH", "OUT_PATH", "LOG_DIR", "PUID", "PGID", "DRY_RUN",
    "ISOLATE_FAILURES", "MAX_WORKERS", "LOG_LEVEL", "SEARCH_TIMEOUT",
    "USER_AGENT", "PIPELINE_LLM_BASE_URL", "PIPELINE_LLM_API_KEY",
    "PIPELINE_LLM_MODEL", "MAX_TOOL_ROUNDS",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove config env vars so defaults tests see actual defaults."""
    for var in _CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    def test_default_values(self, tmp_path):
        config = ManagerConfig(
            _env_file=None, watch_path=tmp_path / "in", out_path=tmp_path / "out"
        )
        assert config.puid is None
        assert config.pgid is None
        assert config.dry_run is False
        assert config.isolate_failures is False
        assert config.max_workers == 4
        assert config.log_level == "INFO"
        assert config.log_dir is None
        assert config.pipeline_llm_model == "gpt-4o-mini"
        assert config.max_tool_rounds == 5
        assert config.user_agent == "BookManager/1.0"

    def test_paths_required(self):
        with pytest.raises(ValidationError):
            ManagerConfig(_env_file=None)


class TestPaths:
    def test_relative_paths_resolved_against_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = ManagerConfig(_env_file=None, watch_path="inbox", out_path="books")
        assert config.watch_path == tmp_path.resolve() / "inbox"
        assert config.out_path == tmp_path.resolve() / "books"
        assert config.watch_path.is_absolute()

    def test_paths_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("WATCH_PATH", str(tmp_path / "in"))
        monkeypatch.setenv("OUT_PATH", str(tmp_path / "out"))
        config = ManagerConfig(_env_file=None)
        assert config.watch_path == (tmp_path / "in").resolve()
        assert config.out_path == (tmp_path / "out").resolve()

    def test_ensure_dirs_creates_out_path(self, tmp_path):
        config = ManagerConfig(
            _env_file=None, watch_path=tmp_path, out_path=tmp_path / "a" / "b"
        )
        config.ensure_dirs()
        assert (tmp_path / "a" / "b").is_dir()


class TestOwner:
    def _config(self, tmp_path, **kwargs):
        return ManagerConfig(
            _env_file=None, watch_path=tmp_path, out_path=tmp_path, **kwargs
        )

    def test_both_set(self, tmp_path):
        config = self._config(tmp_path, puid=1000, pgid=100)
        assert config.owner == Owner(uid=1000, gid=100)

    def test_only_uid(self, tmp_path):
        assert self._config(tmp_path, puid=1000).owner is None

    def test_only_gid(self, tmp_path):
        assert self._config(tmp_path, pgid=100).owner is None

    def test_neither(self, tmp_path):
        assert self._config(tmp_path).owner is None

    def test_zero_ids_are_valid(self, tmp_path):
        assert self._config(tmp_path, puid=0, pgid=0).owner == Owner(uid=0, gid=0)

    def test_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PUID", "1000")
        monkeypatch.setenv("PGID", "100")
        assert self._config(tmp_path).owner == Owner(uid=1000, gid=100)

    def test_blank_env_is_unset(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PUID", "1000")
        monkeypatch.setenv("PGID", "")
        config = self._config(tmp_path)
        assert config.pgid is None
        assert config.owner is None


class TestOverrides:
    def test_constructor_override(self, tmp_path):
        config = ManagerConfig(
            _env_file=None,
            watch_path=tmp_path,
            out_path=tmp_path,
            dry_run=True,
            max_workers=2,
        )
        assert config.dry_run is True
        assert config.max_workers == 2

    def test_env_var_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PIPELINE_LLM_MODEL", "llama3")
        monkeypatch.setenv("ISOLATE_FAILURES", "true")
        config = ManagerConfig(_env_file=None, watch_path=tmp_path, out_path=tmp_path)
        assert config.pipeline_llm_model == "llama3"
        assert config.isolate_failures is True

    def test_env_file(self, tmp_path):
        env_file = tmp_path / "test.env"
        env_file.write_text(f"WATCH_PATH={tmp_path}\nOUT_PATH={tmp_path / 'out'}\n")
        config = ManagerConfig(_env_file=env_file)
        assert config.out_path == (tmp_path / "out").resolve()

    def test_frozen(self, tmp_path):
        config = ManagerConfig(_env_file=None, watch_path=tmp_path, out_path=tmp_path)
        with pytest.raises(ValidationError):
            config.dry_run = True
