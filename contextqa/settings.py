# contextqa/settings.py
import os
from typing import Optional

from dotenv import load_dotenv

DEFAULT_EMBEDDER_MODEL = "sentence-transformers/all-MiniLM-L6-v2"


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


class Settings:
    """Runtime configuration, read from the environment (and a local .env)."""

    def __init__(
        self,
        api_url: str = "",
        api_key: str = "",
        port: int = 8000,
        host: str = "0.0.0.0",
        embedder_model: str = DEFAULT_EMBEDDER_MODEL,
        api_timeout: float = 30.0,
        corpus_path: Optional[str] = None,
        log_level: str = "INFO",
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.port = port
        self.host = host
        self.embedder_model = embedder_model
        self.api_timeout = api_timeout
        self.corpus_path = corpus_path
        self.log_level = log_level

    def __repr__(self) -> str:
        # never print the credential
        return (
            f"Settings(api_url={self.api_url!r}, port={self.port}, host={self.host!r}, "
            f"embedder_model={self.embedder_model!r}, api_timeout={self.api_timeout}, "
            f"corpus_path={self.corpus_path!r}, log_level={self.log_level!r})"
        )


def load_settings() -> Settings:
    load_dotenv()
    return Settings(
        api_url=os.getenv("API_URL", "") or "",
        api_key=os.getenv("API_KEY", "") or "",
        port=_env_int("PORT", 8000),
        host=os.getenv("HOST", "0.0.0.0") or "0.0.0.0",
        embedder_model=os.getenv("EMBEDDER_MODEL", "") or DEFAULT_EMBEDDER_MODEL,
        api_timeout=_env_float("API_TIMEOUT", 30.0),
        corpus_path=os.getenv("CORPUS_PATH") or None,
        log_level=(os.getenv("LOG_LEVEL", "INFO") or "INFO").upper(),
    )
