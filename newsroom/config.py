import os
from dataclasses import dataclass
from pathlib import Path

from newsroom.errors import ConfigError


def _env(name, default=""):
    return os.environ.get(name, default).strip()


def _int_env(name, default):
    try:
        return int(_env(name, str(default)))
    except ValueError:
        return default


def _bool_env(name, default):
    raw = _env(name, "1" if default else "0").lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass
class Settings:
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    telegram_token: str = ""
    telegram_chat_id: str = ""
    elevenlabs_api_key: str = ""
    elevenlabs_voice_id: str = "EXAVITQu4vr4xnSDxMaL"
    elevenlabs_model_id: str = "eleven_monolingual_v1"
    store_backend: str = "json"
    supabase_url: str = ""
    supabase_key: str = ""
    data_dir: Path = Path("data")
    audio_dir: Path = Path("public/audio")
    audio_url_prefix: str = "/audio"
    uploads_dir: Path = Path("public/uploads")
    extraction_timeout: int = 30
    download_timeout: int = 15
    cache_enabled: bool = False
    cache_ttl: int = 1800
    log_level: str = "INFO"

    @classmethod
    def from_env(cls):
        """Read settings from the process environment (call load_dotenv() first)."""
        return cls(
            gemini_api_key=_env("GEMINI_API_KEY"),
            gemini_model=_env("GEMINI_MODEL", "gemini-2.5-flash"),
            telegram_token=_env("TELEGRAM_TOKEN"),
            telegram_chat_id=_env("TELEGRAM_CHAT_ID"),
            elevenlabs_api_key=_env("ELEVENLABS_API_KEY"),
            elevenlabs_voice_id=_env("ELEVENLABS_VOICE_ID", "EXAVITQu4vr4xnSDxMaL"),
            elevenlabs_model_id=_env("ELEVENLABS_MODEL_ID", "eleven_monolingual_v1"),
            store_backend=_env("NEWSROOM_STORE", "json").lower(),
            supabase_url=_env("SUPABASE_URL"),
            supabase_key=_env("SUPABASE_KEY"),
            data_dir=Path(_env("NEWSROOM_DATA_DIR", "data")),
            audio_dir=Path(_env("NEWSROOM_AUDIO_DIR", "public/audio")),
            audio_url_prefix=_env("NEWSROOM_AUDIO_URL_PREFIX", "/audio").rstrip("/"),
            uploads_dir=Path(_env("NEWSROOM_UPLOADS_DIR", "public/uploads")),
            extraction_timeout=_int_env("NEWSROOM_EXTRACTION_TIMEOUT", 30),
            download_timeout=_int_env("NEWSROOM_DOWNLOAD_TIMEOUT", 15),
            cache_enabled=_bool_env("NEWSROOM_CACHE_ENABLED", False),
            cache_ttl=_int_env("NEWSROOM_CACHE_TTL", 1800),
            log_level=_env("NEWSROOM_LOG_LEVEL", "INFO").upper(),
        )

    def require(self, *names):
        """Raise ConfigError unless every named setting is non-empty."""
        missing = [n for n in names if not getattr(self, n)]
        if missing:
            raise ConfigError("Missing configuration: " + ", ".join(n.upper() for n in missing))
