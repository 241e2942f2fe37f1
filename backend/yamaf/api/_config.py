from pydantic_settings import BaseSettings, SettingsConfigDict
from starlette.requests import Request


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="yamaf__api__", frozen=True)

    host: str = "127.0.0.1"
    port: int = 8000
    reload: bool = False
    log_level: str = "info"
    title: str = "Simpler Filehost"


def get_config(*, request: Request) -> Config:
    """A lifetime dependency."""
    return request.state.api_config  # type: ignore[no-any-return]
