"""Environment and file based configuration."""

from fitpick_app.config import DEFAULT_TEXT_MODEL, ENV_KEYS, FitPickConfig


def _clear(monkeypatch) -> None:
    for key in ("APP_ENV", "APP_CONFIG_PATH", *ENV_KEYS.values()):
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_env(monkeypatch) -> None:
    _clear(monkeypatch)

    config = FitPickConfig.from_env()

    assert config.project_id == "fitpick-local"
    assert config.model == DEFAULT_TEXT_MODEL
    assert config.api_key is None
    assert config.environment is None


def test_environment_file_and_overrides(monkeypatch, tmp_path) -> None:
    _clear(monkeypatch)
    (tmp_path / "staging.yaml").write_text(
        "# staging\n"
        "project_id: fitpick-staging\n"
        'database_path: "/var/fitpick/app.db"\n'
        "model: gemini-file  # overridden below\n"
    )
    monkeypatch.setenv("FITPICK_CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("MODEL", "gemini-env")

    config = FitPickConfig.from_env()

    assert config.project_id == "fitpick-staging"
    assert config.database_path == "/var/fitpick/app.db"
    assert config.model == "gemini-env"
    assert config.environment == "staging"


def test_describe_hides_secrets() -> None:
    summary = FitPickConfig(api_key="secret", news_api_key=None).describe()

    assert "api_key" not in summary
    assert summary["has_api_key"] is True
    assert summary["has_news_api_key"] is False
    assert summary["model"] == DEFAULT_TEXT_MODEL
