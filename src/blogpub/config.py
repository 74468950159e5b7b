"""Application configuration: settings schema and blogpub.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator


CONFIG_FILE = "blogpub.yaml"
ENV_PREFIX = "BLOGPUB_"


class Settings(BaseModel):
    app_name:      str = "blogpub"
    db_url:        str = "sqlite:///blogpub.db"
    output_dir:    str = Field(default="_site_data",       description="Directory for exported posts + index.json")
    staging_dir:   str = Field(default=".blogpub/staging", description="Staging directory for extracted post JSON")
    parser_config: str = Field(default="commonmark",       description="MarkdownIt parser preset name")
    max_versions:  int = Field(default=10, ge=0, description="Max stored versions per post; 0 disables pruning")
    executor:      str = Field(default="process", pattern="^(process|thread|futures|asyncio)$",
                               description="Worker pool strategy for lint runs")
    workers:       int = Field(default=0, ge=0, description="Worker count; 0 = one per CPU")
    default_layout: str = Field(default="post", description="Layout used when a post omits one")
    required_fields: list[str] = Field(default=["title", "date"], description="Front-matter keys every post needs")
    checked_languages: list[str] = Field(
        default=["python", "py", "json", "yaml", "yml", "toml"],
        description="Fenced code languages that are syntax-checked",
    )

    @field_validator("required_fields", "checked_languages", mode="before")
    @classmethod
    def split_csv(cls, v):
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from blogpub.yaml, then BLOGPUB_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
