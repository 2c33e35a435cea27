"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "MDBLOG_"


class Settings(BaseModel):
    app_name:          str = "mdblog"
    db_url:            str = "sqlite:///mdblog.db"
    image_api:         str = Field(default="https://img.krats.se", description="Base url of the image service")
    image_user:        Optional[str] = Field(default=None, description="Image service login; anonymous when unset")
    image_password:    Optional[str] = Field(default=None, description="Image service password")
    publish_images:    bool = Field(default=False, description="Make referenced non-public images public")
    oembed_endpoint:   str = Field(default="https://www.youtube.com/oembed", description="oEmbed endpoint for video embeds")
    default_lang:      str = Field(default="en", pattern="^(en|sv)$", description="Language when a file name has none")
    teaser_min_length: int = Field(default=900, ge=0, description="Bodies shorter than this are never split")
    teaser_window:     int = Field(default=700, ge=1, description="Search window for a teaser cut after the title")
    workers:           int = Field(default=1,   ge=1, description="Documents rendered in parallel by 'read'")
    log_level:         str = Field(default="INFO", description="Console log level")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDBLOG_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
