from abc import ABC, abstractmethod
from collections.abc import AsyncIterable
from contextlib import asynccontextmanager
from typing import AsyncIterator, Protocol

from typing_extensions import override


class DriverFileError(Exception):
    def __init__(self, name: str, /) -> None:
        super().__init__()
        self.name = name

    @override
    def __str__(self) -> str:
        return f"'{self.name}'"


class DriverFileExistsError(DriverFileError): ...


class DriverFileNotFoundError(DriverFileError): ...


class DriverFileTooLargeError(DriverFileError): ...


# Satisfied by aiofiles's binary files
class AsyncReadable(Protocol):
    async def read(self, size: int = ..., /) -> bytes: ...

    async def seek(self, offset: int, whence: int = ..., /) -> int: ...


class Driver(ABC):
    @abstractmethod
    async def write_stored_file(
        self,
        chunks: AsyncIterable[bytes],
        name: str,
        /,
        *,
        max_file_size: int,
    ) -> int:
        """Writes chunks to a new stored file and returns its size.

        Raises DriverFileExistsError before consuming any chunk if the name
        is taken, and DriverFileTooLargeError as soon as the running size
        exceeds max_file_size. A name taken while the chunks are written
        raises FileExistsError and the existing file is kept. Nothing is
        left behind on failure.
        """

    @abstractmethod
    async def stat_stored_file(self, name: str, /) -> int:
        """Returns the size of a stored file."""

    @abstractmethod
    @asynccontextmanager
    def open_stored_file(self, name: str, /) -> AsyncIterator[AsyncReadable]: ...
