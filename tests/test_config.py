"""Tests for Settings and the cached accessor."""

from pathlib import Path

import pytest

from db_lens.config import (
    DEFAULT_CONFIG_FILE,
    Settings,
    get_settings,
    load_workspace_settings,
    reset_settings,
)


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DB_LENS_CONFIG_FILE", raising=False)
        monkeypatch.delenv("DB_LENS_PAGE_SIZE", raising=False)
        settings = Settings()
        assert settings.config_file == DEFAULT_CONFIG_FILE
        assert settings.page_size == 50

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("DB_LENS_PAGE_SIZE", "25")
        monkeypatch.setenv("DB_LENS_CONNECT_TIMEOUT", "2")
        settings = Settings()
        assert settings.page_size == 25
        assert settings.connect_timeout == 2

    def test_workspace_root_defaults_to_cwd(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("DB_LENS_WORKSPACE_ROOT", raising=False)
        monkeypatch.chdir(tmp_path)
        assert Settings().get_workspace_root() == tmp_path

    def test_config_file_relative_to_workspace(self, tmp_path: Path):
        settings = Settings(workspace_root=str(tmp_path), config_file="conf/db.yaml")
        assert settings.get_config_file_path() == tmp_path / "conf" / "db.yaml"

    def test_absolute_config_file(self, tmp_path: Path):
        absolute = tmp_path / "elsewhere.json"
        settings = Settings(workspace_root="/somewhere", config_file=str(absolute))
        assert settings.get_config_file_path() == absolute


class TestGetSettings:
    def test_cached_until_reset(self):
        reset_settings()
        first = get_settings()
        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first
        reset_settings()


class TestLoadWorkspaceSettings:
    @pytest.fixture(autouse=True)
    def isolated(self, tmp_path: Path, monkeypatch):
        for name in ("DB_LENS_PAGE_SIZE", "DB_LENS_CONFIG_FILE", "DB_LENS_WORKSPACE_ROOT"):
            monkeypatch.delenv(name, raising=False)
        cwd = tmp_path / "cwd"
        cwd.mkdir()
        monkeypatch.chdir(cwd)

    @pytest.fixture
    def project(self, tmp_path: Path) -> Path:
        root = tmp_path / "project"
        root.mkdir()
        return root

    def test_reads_workspace_dotenv(self, project: Path):
        (project / ".env").write_text("DB_LENS_PAGE_SIZE=7\nDB_LENS_CONFIG_FILE=db.yaml\n")
        settings = load_workspace_settings(project)

        assert settings.page_size == 7
        assert settings.get_workspace_root() == project
        assert settings.get_config_file_path() == project / "db.yaml"

    def test_workspace_dotenv_beats_cwd_dotenv(self, tmp_path: Path, project: Path):
        (tmp_path / "cwd" / ".env").write_text("DB_LENS_PAGE_SIZE=3\n")
        (project / ".env").write_text("DB_LENS_PAGE_SIZE=7\n")
        assert load_workspace_settings(project).page_size == 7

    def test_process_env_and_overrides_win(self, project: Path, monkeypatch):
        (project / ".env").write_text("DB_LENS_PAGE_SIZE=7\nDB_LENS_CONFIG_FILE=db.yaml\n")
        monkeypatch.setenv("DB_LENS_PAGE_SIZE", "9")

        settings = load_workspace_settings(project, config_file="other.json")
        assert settings.page_size == 9
        assert settings.config_file == "other.json"

    def test_undecodable_dotenv_falls_back_to_defaults(self, project: Path):
        (project / ".env").write_bytes(b"DB_LENS_PAGE_SIZE=\xff\n")
        settings = load_workspace_settings(project)

        assert settings.page_size == 50
        assert settings.get_workspace_root() == project
