from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class EditorSettings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    app_name: str = Field(default="pose-editor")
    log_level: str = Field(default="INFO")
    file_extension: str = Field(default=".csv")
    untitled_name: str = Field(default="Untitled")
    max_bone_limit: int = Field(default=1_000_000, gt=1)
    bone_name_template: str = Field(default="bone ({index})")

    model_config = {
        "env_file": (".env", ".env.local", str(Path(__file__).parent.parent.parent / ".env")),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache(maxsize=1)
def get_settings() -> EditorSettings:
    """Return cached application settings."""

    return EditorSettings()
