import codecs
import logging
import mimetypes
import secrets
from collections.abc import AsyncIterable, AsyncIterator
from contextlib import AsyncExitStack

from ._config import Config
from ._exception import (
    FileError,
    FileFileNotFoundError,
    FileFileTooLargeError,
    FileInvalidKeyError,
    FileMissingKeyError,
    FileNoFilesUploadedError,
    FileStorageError,
    FileWrongKeyError,
)
from ._models import Download, UploadedFile, UploadField
from ._utils import make_stored_name, parse_byte_range
from .driver import (
    AsyncReadable,
    Driver,
    DriverFileExistsError,
    DriverFileNotFoundError,
    DriverFileTooLargeError,
)

_MAX_STORED_NAME_ATTEMPTS = 5

logger = logging.getLogger(__name__)


async def upload_files(
    fields: AsyncIterable[UploadField], /, *, config: Config, driver: Driver
) -> list[UploadedFile]:
    """Stores every file field of an upload and returns their public links.

    Fields are handled in arrival order. When a key is configured, a file
    field is only accepted after a matching key field. Any error fails the
    whole upload, but files stored by earlier fields are kept.
    """
    uploaded_files: list[UploadedFile] = []
    is_authorized = config.key is None

    try:
        async for field in fields:
            match field.name:
                case "key":
                    if config.key is not None:
                        await _check_key(field, key=config.key)
                        is_authorized = True
                case "file":
                    if not is_authorized:
                        raise FileMissingKeyError()
                    uploaded_file = await _upload_file(
                        field, config=config, driver=driver
                    )
                    uploaded_files.append(uploaded_file)
                case _:
                    pass
    except FileError as e:
        if uploaded_files:
            logger.warning(
                "Upload failed (%s), keeping already stored files: %s",
                e,
                ", ".join(f.name for f in uploaded_files),
            )
        raise

    if not uploaded_files:
        raise FileNoFilesUploadedError()

    return uploaded_files


async def _check_key(field: UploadField, /, *, key: str) -> None:
    expected = key.encode()

    # The whole value is decoded, but only enough of it to tell a match is kept.
    decoder = codecs.getincrementaldecoder("utf-8")()
    value = bytearray()
    try:
        async for chunk in field.chunks():
            _ = decoder.decode(chunk)
            if len(value) <= len(expected):
                value += chunk[: len(expected) + 1 - len(value)]
        _ = decoder.decode(b"", final=True)
    except UnicodeDecodeError as e:
        raise FileInvalidKeyError() from e

    if not secrets.compare_digest(bytes(value), expected):
        logger.warning("Rejected upload with a wrong key")
        raise FileWrongKeyError()


async def _upload_file(
    field: UploadField, /, *, config: Config, driver: Driver
) -> UploadedFile:
    for _ in range(_MAX_STORED_NAME_ATTEMPTS):
        name = make_stored_name(field.filename)

        try:
            size = await driver.write_stored_file(
                field.chunks(), name, max_file_size=config.max_file_size
            )
        except DriverFileExistsError:
            logger.info("Stored name '%s' is taken, picking another one", name)
            continue
        except DriverFileTooLargeError as e:
            logger.warning(
                "Rejected file '%s', it exceeds %d bytes", name, config.max_file_size
            )
            raise FileFileTooLargeError(field.filename or name) from e
        except OSError as e:
            logger.error("Failed to store file '%s': %s", name, e)
            raise FileStorageError() from e

        logger.info("Stored file '%s' (%d bytes)", name, size)
        return UploadedFile(
            name=name, url=f"{config.external_base_url}/{name}", size=size
        )

    logger.error("Failed to pick a free stored name for '%s'", field.filename)
    raise FileStorageError()


async def open_download(
    name: str,
    /,
    *,
    range_header: str | None = None,
    chunk_size: int,
    driver: Driver,
) -> Download:
    """Opens a stored file for streaming.

    The file is open once this returns and is closed when the content
    iterator is exhausted or closed.
    """
    stack = AsyncExitStack()
    try:
        size = await driver.stat_stored_file(name)
        f = await stack.enter_async_context(driver.open_stored_file(name))
    except DriverFileNotFoundError as e:
        await stack.aclose()
        raise FileFileNotFoundError(name) from e

    try:
        byte_range = (
            parse_byte_range(range_header, size=size)
            if range_header is not None
            else None
        )
    except FileError:
        await stack.aclose()
        raise

    media_type, _ = mimetypes.guess_type(name)
    first_byte, last_byte = byte_range or (0, size - 1)

    return Download(
        name=name,
        media_type=media_type or "application/octet-stream",
        size=size,
        byte_range=byte_range,
        content=_iter_content(
            f,
            stack,
            offset=first_byte,
            length=last_byte - first_byte + 1,
            chunk_size=chunk_size,
        ),
    )


async def _iter_content(
    f: AsyncReadable,
    stack: AsyncExitStack,
    /,
    *,
    offset: int,
    length: int,
    chunk_size: int,
) -> AsyncIterator[bytes]:
    async with stack:
        if offset:
            _ = await f.seek(offset)

        remaining = length
        while remaining > 0 and (chunk := await f.read(min(chunk_size, remaining))):
            yield chunk
            remaining -= len(chunk)
