from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from ._config import Config
from ._exception import (
    FileFileNotFoundError,
    FileFileTooLargeError,
    FileInvalidKeyError,
    FileMissingKeyError,
    FileNoFilesUploadedError,
    FileRangeNotSatisfiableError,
    FileWrongKeyError,
)
from ._service import open_download, upload_files
from .driver import FileSystemDriver


class _Field:
    def __init__(
        self, name: str | None, content: bytes = b"", /, *, filename: str | None = None
    ) -> None:
        self.name = name
        self.filename = filename
        self.content = content
        self.chunk_count = 0

    async def chunks(self) -> AsyncIterator[bytes]:
        for i in range(0, len(self.content), 4):
            self.chunk_count += 1
            yield self.content[i : i + 4]

    async def read(self) -> bytes:
        return b"".join([chunk async for chunk in self.chunks()])


def _stored_files(file_system_dir: Path, /) -> list[Path]:
    return [p for p in file_system_dir.iterdir() if p.is_file()]


async def _iter_fields(*fields: _Field) -> AsyncIterator[_Field]:
    for field in fields:
        yield field


def _make_config(*, key: str | None = None) -> Config:
    return Config(
        key=key,
        chunk_size=4,
        max_file_size=16,
        external_host="files.example.com",
        external_has_tls=True,
    )


async def test_upload_files(*, tmp_path: Path) -> None:
    """Tests the upload_files function without a key."""
    driver = FileSystemDriver(file_system_dir=tmp_path)

    uploaded_files = await upload_files(
        _iter_fields(
            _Field("file", b"hello", filename="Hello World.txt"),
            _Field("ignored", b"whatever"),
            _Field("key", b"ignored when no key is configured"),
            _Field("file", b"x" * 16),
        ),
        config=_make_config(),
        driver=driver,
    )

    assert len(uploaded_files) == 2
    named, unnamed = uploaded_files

    assert named.name.endswith("-hello-world.txt")
    assert named.url == f"https://files.example.com/{named.name}"
    assert named.size == 5
    assert (tmp_path / named.name).read_bytes() == b"hello"

    assert unnamed.name.endswith("-upload")
    assert unnamed.size == 16
    assert (tmp_path / unnamed.name).read_bytes() == b"x" * 16

    assert sorted(p.name for p in _stored_files(tmp_path)) == sorted(
        [named.name, unnamed.name]
    )


async def test_upload_files_same_filename(*, tmp_path: Path) -> None:
    """Tests that repeated uploads of one file name never collide."""
    driver = FileSystemDriver(file_system_dir=tmp_path)

    uploaded_files = await upload_files(
        _iter_fields(
            *[_Field("file", b"same", filename="same.txt") for _ in range(50)]
        ),
        config=_make_config(),
        driver=driver,
    )

    assert len({f.name for f in uploaded_files}) == 50
    assert len(_stored_files(tmp_path)) == 50


async def test_upload_files_too_large(*, tmp_path: Path) -> None:
    """Tests that a file above max_file_size fails the upload."""
    driver = FileSystemDriver(file_system_dir=tmp_path)

    with pytest.raises(FileFileTooLargeError) as exc_info:
        _ = await upload_files(
            _iter_fields(_Field("file", b"x" * 17, filename="big.bin")),
            config=_make_config(),
            driver=driver,
        )

    assert exc_info.value.status_code == 413
    assert exc_info.value.detail == "File big.bin is too big!"
    assert _stored_files(tmp_path) == []


async def test_upload_files_keeps_earlier_files(*, tmp_path: Path) -> None:
    """Tests that files stored before a failing field are kept."""
    driver = FileSystemDriver(file_system_dir=tmp_path)

    with pytest.raises(FileFileTooLargeError):
        _ = await upload_files(
            _iter_fields(
                _Field("file", b"small", filename="small.txt"),
                _Field("file", b"x" * 17, filename="big.bin"),
            ),
            config=_make_config(),
            driver=driver,
        )

    stored = _stored_files(tmp_path)
    assert len(stored) == 1
    assert stored[0].name.endswith("-small.txt")


async def test_upload_files_key(*, tmp_path: Path) -> None:
    """Tests the upload_files function with a key."""
    driver = FileSystemDriver(file_system_dir=tmp_path)
    config = _make_config(key="s3cret")

    # Case about a correct key before the file.

    uploaded_files = await upload_files(
        _iter_fields(_Field("key", b"s3cret"), _Field("file", b"data")),
        config=config,
        driver=driver,
    )
    assert [f.size for f in uploaded_files] == [4]

    # Case about the file arriving before the key.

    file_field = _Field("file", b"data")
    with pytest.raises(FileMissingKeyError):
        _ = await upload_files(
            _iter_fields(file_field, _Field("key", b"s3cret")),
            config=config,
            driver=driver,
        )
    assert file_field.chunk_count == 0

    # Case about no key at all.

    with pytest.raises(FileMissingKeyError):
        _ = await upload_files(
            _iter_fields(_Field("file", b"data")), config=config, driver=driver
        )

    # Case about a wrong key.

    for wrong_key in [b"", b"s3cre", b"s3cret!", b"S3CRET", b"x" * 4096]:
        with pytest.raises(FileWrongKeyError):
            _ = await upload_files(
                _iter_fields(_Field("key", wrong_key), _Field("file", b"data")),
                config=config,
                driver=driver,
            )

    # Case about a key that is not UTF-8, whatever its length.

    for invalid_key in [
        b"\xff\xfe",
        b"\xff\xfe\xfd\xfc\xfb\xfa\xf9\xf8",
        b"s3cret" + b"x" * 64 + b"\xff",
        b"s3cret\xc3",
    ]:
        with pytest.raises(FileInvalidKeyError) as exc_info:
            _ = await upload_files(
                _iter_fields(_Field("key", invalid_key), _Field("file", b"data")),
                config=config,
                driver=driver,
            )
        assert exc_info.value.status_code == 500

    assert len(_stored_files(tmp_path)) == 1


async def test_upload_files_no_files(*, tmp_path: Path) -> None:
    """Tests that an upload without file fields fails."""
    driver = FileSystemDriver(file_system_dir=tmp_path)

    for fields in [(), (_Field("key", b""),), (_Field("other", b"data"),)]:
        with pytest.raises(FileNoFilesUploadedError):
            _ = await upload_files(
                _iter_fields(*fields), config=_make_config(), driver=driver
            )


async def test_open_download(*, tmp_path: Path) -> None:
    """Tests the open_download function."""
    driver = FileSystemDriver(file_system_dir=tmp_path)
    (tmp_path / "Ab3dEf7h-notes.txt").write_bytes(b"0123456789")
    (tmp_path / "Ab3dEf7h-blob").write_bytes(b"\x00\x01")

    # Case about a whole file.

    download = await open_download("Ab3dEf7h-notes.txt", chunk_size=4, driver=driver)

    assert download.status_code == 200
    assert download.headers == {
        "Content-Type": "text/plain",
        "Content-Length": "10",
        "Accept-Ranges": "bytes",
    }
    assert b"".join([chunk async for chunk in download.content]) == b"0123456789"

    # Case about an unknown extension.

    download = await open_download("Ab3dEf7h-blob", chunk_size=4, driver=driver)

    assert download.media_type == "application/octet-stream"
    assert b"".join([chunk async for chunk in download.content]) == b"\x00\x01"

    # Case about a byte range.

    download = await open_download(
        "Ab3dEf7h-notes.txt", range_header="bytes=3-8", chunk_size=4, driver=driver
    )

    assert download.status_code == 206
    assert download.headers["Content-Length"] == "6"
    assert download.headers["Content-Range"] == "bytes 3-8/10"
    assert b"".join([chunk async for chunk in download.content]) == b"345678"

    # Case about an unsatisfiable byte range.

    with pytest.raises(FileRangeNotSatisfiableError):
        _ = await open_download(
            "Ab3dEf7h-notes.txt", range_header="bytes=10-", chunk_size=4, driver=driver
        )

    # Case about missing files.

    for name in ["missing.txt", "..", "."]:
        with pytest.raises(FileFileNotFoundError) as exc_info:
            _ = await open_download(name, chunk_size=4, driver=driver)
        assert exc_info.value.status_code == 404
