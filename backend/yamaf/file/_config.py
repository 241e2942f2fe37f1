from pydantic import PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict
from starlette.requests import Request


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="yamaf__file__", frozen=True)

    key: str | None = None
    chunk_size: PositiveInt = 1024 * 64  # 64 KiB
    max_file_size: PositiveInt = 1024 * 1024 * 100  # 100 MiB
    max_files: PositiveInt = 10
    external_host: str = "localhost:8000"
    external_has_tls: bool = False

    @property
    def max_body_size(self) -> int:
        return self.max_files * self.max_file_size * 2

    @property
    def external_base_url(self) -> str:
        scheme = "https" if self.external_has_tls else "http"
        return f"{scheme}://{self.external_host}"


def get_config(*, request: Request) -> Config:
    """A lifetime dependency."""
    return request.state.file_config  # type: ignore[no-any-return]
