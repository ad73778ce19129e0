"""Configuration via pydantic-settings: 12-factor app style."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """elblogs configuration: loaded from env vars / .env file.

    Frozen after construction: the debug flag is read-only for the whole run.
    """

    debug: bool = Field(default=False, description="Emit per-file progress messages")
    encoding: str = Field(default="utf-8", description="Text encoding of the log files")
    quoted_request: bool = Field(
        default=False,
        description="Honour quotes when tokenizing, so request URLs may contain spaces",
    )

    class Config:
        env_prefix = "ELBLOGS_"
        env_file = ".env"
        frozen = True


settings = Settings()
