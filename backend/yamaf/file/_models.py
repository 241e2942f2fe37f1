from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel


class UploadField(Protocol):
    """A single multipart field, readable once in arrival order."""

    @property
    def name(self) -> str | None: ...

    @property
    def filename(self) -> str | None: ...

    def chunks(self) -> AsyncIterator[bytes]: ...

    async def read(self) -> bytes: ...


class UploadedFile(BaseModel):
    name: str
    url: str
    size: int

    @property
    def size_kib(self) -> float:
        return self.size / 1024


@dataclass(frozen=True)
class Download:
    name: str
    media_type: str
    size: int
    byte_range: tuple[int, int] | None
    content: AsyncIterator[bytes]

    @property
    def content_length(self) -> int:
        if self.byte_range is None:
            return self.size
        first_byte, last_byte = self.byte_range
        return last_byte - first_byte + 1

    @property
    def status_code(self) -> int:
        return 200 if self.byte_range is None else 206

    @property
    def headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": self.media_type,
            "Content-Length": str(self.content_length),
            "Accept-Ranges": "bytes",
        }
        if self.byte_range is not None:
            first_byte, last_byte = self.byte_range
            headers["Content-Range"] = f"bytes {first_byte}-{last_byte}/{self.size}"
        return headers
