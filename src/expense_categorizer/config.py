"""Runtime configuration and logging setup.

Settings come from environment variables; a ``.env`` file in the working
directory is loaded first when present.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.logging import RichHandler

DEFAULT_MODEL_PATH = "models/trained-model.json"


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Categorizer service configuration.

    Attributes:
        model_path: Local JSON file holding the trained model.
        s3_bucket: When set, the model is stored in this bucket instead.
        s3_key: Object key used with ``s3_bucket``.
        s3_region: AWS region for the S3 client.
        log_level: Root logging level name.
        admin_token: Shared secret required by the training endpoint, if set.
        api_prefix: Route prefix for the HTTP API.
        debug: FastAPI debug mode.
        cors_origins: Origins allowed to call the API from a browser.
    """

    model_path: str = DEFAULT_MODEL_PATH
    s3_bucket: Optional[str] = None
    s3_key: str = DEFAULT_MODEL_PATH
    s3_region: str = "us-east-1"
    log_level: str = "INFO"
    admin_token: Optional[str] = None
    api_prefix: str = "/api/categorize"
    debug: bool = False
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from ``CATEGORIZER_*`` environment variables."""
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))
        return cls(
            model_path=os.getenv("CATEGORIZER_MODEL_PATH", DEFAULT_MODEL_PATH),
            s3_bucket=os.getenv("CATEGORIZER_S3_BUCKET") or None,
            s3_key=os.getenv("CATEGORIZER_S3_KEY", DEFAULT_MODEL_PATH),
            s3_region=os.getenv("CATEGORIZER_S3_REGION", "us-east-1"),
            log_level=os.getenv("CATEGORIZER_LOG_LEVEL", "INFO").upper(),
            admin_token=os.getenv("CATEGORIZER_ADMIN_TOKEN") or None,
            api_prefix=os.getenv("CATEGORIZER_API_PREFIX", "/api/categorize").rstrip("/"),
            debug=_env_flag("CATEGORIZER_DEBUG"),
            cors_origins=tuple(
                origin.strip()
                for origin in os.getenv("CATEGORIZER_CORS_ORIGINS", "http://localhost:3000").split(",")
                if origin.strip()
            ),
        )


def configure_logging(level: str = "INFO") -> None:
    """Route log records through rich's handler at the given level."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )
