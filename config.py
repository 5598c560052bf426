"""Runtime configuration read from the process environment."""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from api import ASPECT_RATIOS, DEFAULT_MODEL

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    default_aspect_ratio: str = "1:1"
    log_level: str = "INFO"


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    env = os.environ if environ is None else environ

    api_key = env.get("GEMINI_API_KEY") or env.get("API_KEY") or None

    aspect_ratio = env.get("SKETCH_ASPECT_RATIO", AppConfig.default_aspect_ratio).strip()
    if aspect_ratio not in ASPECT_RATIOS:
        logger.warning("Ignoring unsupported SKETCH_ASPECT_RATIO %r, using %s",
                       aspect_ratio, AppConfig.default_aspect_ratio)
        aspect_ratio = AppConfig.default_aspect_ratio

    return AppConfig(
        api_key=api_key,
        model=env.get("SKETCH_MODEL", "").strip() or AppConfig.model,
        default_aspect_ratio=aspect_ratio,
        log_level=env.get("SKETCH_LOG_LEVEL", AppConfig.log_level).strip().upper() or AppConfig.log_level,
    )
