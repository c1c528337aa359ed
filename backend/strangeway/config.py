from __future__ import annotations

from functools import lru_cache
import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .compositor import MAX_SCALE
from .detector import DetectorConfig

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
BACKEND_DIR = PACKAGE_DIR.parent
REPO_ROOT = BACKEND_DIR.parent
ROOT_ENV_FILE = REPO_ROOT / ".env"
BACKEND_ENV_FILE = BACKEND_DIR / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STRANGEWAY_",
        env_file=(str(ROOT_ENV_FILE), str(BACKEND_ENV_FILE)),
        extra="ignore",
    )

    app_name: str = "Strangeway Face Filter"
    log_level: str = "INFO"

    default_scale: float = Field(default=0.55, ge=0.0, le=MAX_SCALE, allow_inf_nan=False)
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    output_dir: Path = Path(".")
    fetch_timeout_seconds: float = 30.0

    # Face detector
    cascade_path: Path | None = None
    min_face_size: int = 20
    score_threshold: float = 2.0
    pyramid_scale_factor: float = Field(default=0.8, gt=0.0, lt=1.0)
    slide_window_step: int = Field(default=4, ge=1)
    min_neighbors: int = 3

    # Overlay selection; unset means a fresh seed per process
    seed: int | None = None

    @property
    def detector_config(self) -> DetectorConfig:
        return DetectorConfig(
            min_face_size=max(int(self.min_face_size), 1),
            score_threshold=float(self.score_threshold),
            pyramid_scale_factor=float(self.pyramid_scale_factor),
            slide_window_step=int(self.slide_window_step),
            min_neighbors=max(int(self.min_neighbors), 0),
        )

    @property
    def active_env_file(self) -> str:
        if ROOT_ENV_FILE.exists() and BACKEND_ENV_FILE.exists():
            return f"{ROOT_ENV_FILE} (base), {BACKEND_ENV_FILE} (override)"
        if ROOT_ENV_FILE.exists():
            return str(ROOT_ENV_FILE)
        if BACKEND_ENV_FILE.exists():
            return str(BACKEND_ENV_FILE)
        return "none"


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    logger.info(
        "Active settings | default_scale=%s | cascade_path=%s | output_dir=%s | env_file=%s",
        settings.default_scale,
        settings.cascade_path or "opencv-bundled",
        settings.output_dir,
        settings.active_env_file,
    )
    return settings
