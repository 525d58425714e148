import pytest

from pattern_catalog.config import PipelineConfig, load_config


class TestLoadConfig:
    def test_defaults(self):
        assert load_config() == PipelineConfig()

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("PATTERN_CATALOG_WORKERS", "4")
        monkeypatch.setenv("PATTERN_CATALOG_USE_PROCESSES", "true")
        monkeypatch.setenv("PATTERN_CATALOG_FAIL_ON", "WARNING")
        monkeypatch.setenv("PATTERN_CATALOG_EXTENSIONS", "md, markdown")
        monkeypatch.setenv("PATTERN_CATALOG_LOG_LEVEL", "debug")

        config = load_config()

        assert config.workers == 4
        assert config.use_processes is True
        assert config.fail_on == "warning"
        assert config.extensions == (".md", ".markdown")
        assert config.log_level == "DEBUG"

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("PATTERN_CATALOG_WORKERS", "4")
        config = load_config(workers=2, fail_on=None)
        assert config.workers == 2
        assert config.fail_on == "error"

    def test_dotenv_in_working_directory(self, tmp_path):
        (tmp_path / ".env").write_text("PATTERN_CATALOG_WORKERS=3\n", encoding="utf-8")
        assert load_config().workers == 3

    def test_explicit_env_file(self, tmp_path):
        env_file = tmp_path / "ci.env"
        env_file.write_text("PATTERN_CATALOG_FAIL_ON=warning\n", encoding="utf-8")
        assert load_config(env_file).fail_on == "warning"

    def test_process_environment_beats_dotenv(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("PATTERN_CATALOG_WORKERS=3\n", encoding="utf-8")
        monkeypatch.setenv("PATTERN_CATALOG_WORKERS", "5")
        assert load_config().workers == 5

    @pytest.mark.parametrize("name, value", [
        ("PATTERN_CATALOG_WORKERS", "many"),
        ("PATTERN_CATALOG_WORKERS", "0"),
        ("PATTERN_CATALOG_FAIL_ON", "info"),
    ])
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValueError):
            load_config()
