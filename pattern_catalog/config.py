"""
Pipeline configuration.

Values come from environment variables, optionally loaded from a .env file
in the working directory. CLI flags override them.

    PATTERN_CATALOG_EXTENSIONS     .md,.mdx
    PATTERN_CATALOG_WORKERS        1
    PATTERN_CATALOG_USE_PROCESSES  0
    PATTERN_CATALOG_FAIL_ON        error
    PATTERN_CATALOG_LOG_LEVEL      INFO
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".md", ".mdx")
FAIL_ON_CHOICES = ("error", "warning")


@dataclass(frozen=True)
class PipelineConfig:
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    workers: int = 1
    use_processes: bool = False
    fail_on: str = "error"
    log_level: str = "INFO"


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


def _parse_extensions(raw: str) -> Tuple[str, ...]:
    items = []
    for item in raw.split(","):
        item = item.strip().lower()
        if not item:
            continue
        items.append(item if item.startswith(".") else f".{item}")
    return tuple(items) or DEFAULT_EXTENSIONS


def load_config(env_file: Optional[Path] = None, **overrides) -> PipelineConfig:
    """Read configuration from the environment.

    Args:
        env_file: .env file to load first (default: ./.env if it exists)
        **overrides: Field values that win over the environment; None is ignored

    Raises:
        ValueError: If a value cannot be interpreted
    """
    env_path = Path(env_file) if env_file else Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"Loaded environment from {env_path}")

    try:
        workers = int(os.environ.get("PATTERN_CATALOG_WORKERS", "1"))
    except ValueError as exc:
        raise ValueError(f"PATTERN_CATALOG_WORKERS must be an integer: {exc}") from exc

    config = PipelineConfig(
        extensions=_parse_extensions(os.environ.get("PATTERN_CATALOG_EXTENSIONS", ",".join(DEFAULT_EXTENSIONS))),
        workers=workers,
        use_processes=_env_flag("PATTERN_CATALOG_USE_PROCESSES"),
        fail_on=os.environ.get("PATTERN_CATALOG_FAIL_ON", "error").strip().lower(),
        log_level=os.environ.get("PATTERN_CATALOG_LOG_LEVEL", "INFO").strip().upper(),
    )

    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
    _check(config)
    return config


def _check(config: PipelineConfig) -> None:
    if config.workers < 1:
        raise ValueError(f"workers must be at least 1, got {config.workers}")
    if config.fail_on not in FAIL_ON_CHOICES:
        raise ValueError(f"fail_on must be one of {FAIL_ON_CHOICES}, got '{config.fail_on}'")
