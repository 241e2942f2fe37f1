from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from starlette.requests import Request


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="yamaf__file__driver__", frozen=True
    )

    type: Literal["file-system"] = "file-system"
    file_system_dir: Path = Path("/var/files")


def get_config(*, request: Request) -> Config:
    """A lifetime dependency."""
    return request.state.file_driver_config  # type: ignore[no-any-return]
