"""Configuration for the FitPick backend."""

from dataclasses import dataclass, fields
from pathlib import Path
import os
from typing import Dict, Optional

DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"

# Config field -> environment variable. File keys are the lower-cased variable.
ENV_KEYS: Dict[str, str] = {
    "project_id": "PROJECT_ID",
    "model": "MODEL",
    "image_model": "IMAGE_MODEL",
    "api_key": "GOOGLE_API_KEY",
    "google_credentials_path": "GOOGLE_CREDENTIALS_PATH",
    "calendar_id": "CALENDAR_ID",
    "news_api_key": "NEWS_API_KEY",
    "database_path": "DATABASE_PATH",
    "media_dir": "MEDIA_DIR",
    "media_base_url": "MEDIA_BASE_URL",
}


@dataclass
class FitPickConfig:
    """Runtime settings.

    Secrets (Gemini and NewsAPI keys, Google credentials) are optional so the
    service runs offline with heuristic and sample fallbacks.
    """

    project_id: str = "fitpick-local"
    model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    api_key: Optional[str] = None
    google_credentials_path: Optional[str] = None
    calendar_id: str = "primary"
    news_api_key: Optional[str] = None
    database_path: str = "data/fitpick.db"
    media_dir: str = "data/media"
    media_base_url: str = "http://localhost:8080/media"
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "FitPickConfig":
        """Read settings from ``config/environments/<APP_ENV>.yaml`` and the environment.

        ``APP_CONFIG_PATH`` points at an explicit file instead. Environment
        variables override file values; empty values fall back to defaults.
        """

        env_name = os.getenv("APP_ENV")
        explicit = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("FITPICK_CONFIG_DIR", "config/environments"))
        path = Path(explicit) if explicit else (config_dir / f"{env_name}.yaml" if env_name else None)
        file_values = cls._load_yaml_config(path) if path and path.exists() else {}

        values: Dict[str, str] = {}
        for name, env_key in ENV_KEYS.items():
            raw = os.getenv(env_key, file_values.get(env_key.lower()))
            if raw:
                values[name] = raw
        return cls(environment=env_name, **values)

    @staticmethod
    def _load_yaml_config(path: Path) -> Dict[str, str]:
        """Parse flat ``key: value`` lines; nesting and lists are not supported."""

        parsed: Dict[str, str] = {}
        for line in path.read_text().splitlines():
            line = line.split(" #", 1)[0].strip()
            if not line or line.startswith("#") or ":" not in line:
                continue
            key, value = (part.strip() for part in line.split(":", 1))
            if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]
            parsed[key] = value
        return parsed

    def describe(self) -> Dict[str, object]:
        """Non-secret settings, for the health endpoint and startup logs."""

        secrets = {"api_key", "news_api_key", "google_credentials_path"}
        summary: Dict[str, object] = {
            field.name: getattr(self, field.name) for field in fields(self) if field.name not in secrets
        }
        summary.update({f"has_{name}": bool(getattr(self, name)) for name in sorted(secrets)})
        return summary


__all__ = ["DEFAULT_IMAGE_MODEL", "DEFAULT_TEXT_MODEL", "ENV_KEYS", "FitPickConfig"]
