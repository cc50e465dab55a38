import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Host suffixes allowed as embedded frames
DEFAULT_IFRAME_ALLOWLIST = [
    "carto.com",
    "codepen.io",
    "dartlang.org",
    "dartpad.dev",
    "github.com",
    "glitch.com",
    "google.com",
    "google.dev",
    "observablehq.com",
    "repl.it",
    "web.dev",
]


class Settings(BaseSettings):
    pass_metadata: set[str] = Field(default_factory=set)  # extra metadata keys copied to Document.extra
    iframe_allowlist: list[str] = Field(default_factory=lambda: list(DEFAULT_IFRAME_ALLOWLIST))

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="STEPDOC_",
        env_file=[os.getenv("ENV_FILE", ""), ".env"],
        extra="ignore",
        env_nested_delimiter="__",
    )
