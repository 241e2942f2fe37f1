import logging
import stat
from collections.abc import AsyncIterable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiofiles
import aiofiles.os
from typing_extensions import override

from ._driver import (
    AsyncReadable,
    Driver,
    DriverFileExistsError,
    DriverFileNotFoundError,
    DriverFileTooLargeError,
)

logger = logging.getLogger(__name__)

_INCOMPLETE_DIR_NAME = ".incomplete"


class FileSystemDriver(Driver):
    def __init__(self, /, *, file_system_dir: Path) -> None:
        super().__init__()
        self.file_system_dir = file_system_dir

    @override
    async def write_stored_file(
        self,
        chunks: AsyncIterable[bytes],
        name: str,
        /,
        *,
        max_file_size: int,
    ) -> int:
        await aiofiles.os.makedirs(
            self.file_system_dir / _INCOMPLETE_DIR_NAME, exist_ok=True
        )

        complete_path = _name_to_path(name, file_system_dir=self.file_system_dir)
        incomplete_path = self.file_system_dir / _INCOMPLETE_DIR_NAME / name

        if await aiofiles.os.path.exists(complete_path):
            raise DriverFileExistsError(name)

        try:
            f = await aiofiles.open(incomplete_path, "xb")
        except FileExistsError as e:
            raise DriverFileExistsError(name) from e

        # The incomplete file is ours until this call removes it.
        try:
            file_size = 0
            try:
                async for chunk in chunks:
                    file_size += len(chunk)

                    if file_size > max_file_size:
                        raise DriverFileTooLargeError(name)

                    _ = await f.write(chunk)
            finally:
                await f.close()

            # Unlike rename, link never replaces an existing file. A name taken
            # after the chunks were consumed surfaces as FileExistsError.
            await aiofiles.os.link(incomplete_path, complete_path)
        finally:
            await _remove_incomplete_file(incomplete_path)

        return file_size

    @override
    async def stat_stored_file(self, name: str, /) -> int:
        path = _name_to_path(name, file_system_dir=self.file_system_dir)

        try:
            stat_result = await aiofiles.os.stat(path)
        except OSError as e:
            raise DriverFileNotFoundError(name) from e

        if not stat.S_ISREG(stat_result.st_mode):
            raise DriverFileNotFoundError(name)

        return stat_result.st_size

    @override
    @asynccontextmanager
    async def open_stored_file(self, name: str, /) -> AsyncIterator[AsyncReadable]:
        path = _name_to_path(name, file_system_dir=self.file_system_dir)

        try:
            f = await aiofiles.open(path, "rb")
        except OSError as e:
            raise DriverFileNotFoundError(name) from e

        try:
            yield f
        finally:
            await f.close()


def _name_to_path(name: str, /, *, file_system_dir: Path) -> Path:
    # Only direct children of file_system_dir are addressable.
    if name in {"", ".", "..", _INCOMPLETE_DIR_NAME} or any(
        c in name for c in "/\\\0"
    ):
        raise DriverFileNotFoundError(name)
    return file_system_dir / name



async def _remove_incomplete_file(path: Path, /) -> None:
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to remove incomplete file '%s': %s", path, e)
