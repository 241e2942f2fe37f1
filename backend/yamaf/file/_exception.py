from typing import ClassVar

from starlette.requests import Request
from starlette.responses import PlainTextResponse
from typing_extensions import override


class FileError(Exception):
    status_code: ClassVar[int] = 400

    @override
    def __str__(self) -> str:
        return self.detail

    @property
    def detail(self) -> str:
        return "Bad request."

    @property
    def headers(self) -> dict[str, str] | None:
        return None


class FileMalformedUploadError(FileError):
    def __init__(self, reason: str, /) -> None:
        super().__init__()
        self.reason = reason

    @property
    @override
    def detail(self) -> str:
        return f"Malformed upload: {self.reason}."


class FileWrongKeyError(FileError):
    @property
    @override
    def detail(self) -> str:
        return "Wrong key"


class FileMissingKeyError(FileError):
    @property
    @override
    def detail(self) -> str:
        return "Missing key"


class FileNoFilesUploadedError(FileError):
    @property
    @override
    def detail(self) -> str:
        return "No files uploaded"


class FileFileTooLargeError(FileError):
    status_code = 413

    def __init__(self, filename: str, /) -> None:
        super().__init__()
        self.filename = filename

    @property
    @override
    def detail(self) -> str:
        return f"File {self.filename} is too big!"


class FileUploadTooLargeError(FileError):
    status_code = 413

    def __init__(self, max_body_size: int, /) -> None:
        super().__init__()
        self.max_body_size = max_body_size

    @property
    @override
    def detail(self) -> str:
        return f"Request body is larger than {self.max_body_size} bytes."


class FileFileNotFoundError(FileError):
    status_code = 404

    def __init__(self, name: str, /) -> None:
        super().__init__()
        self.name = name

    @property
    @override
    def detail(self) -> str:
        return "File Not Found!"


class FileRangeNotSatisfiableError(FileError):
    status_code = 416

    def __init__(self, size: int, /) -> None:
        super().__init__()
        self.size = size

    @property
    @override
    def detail(self) -> str:
        return "Requested range not satisfiable."

    @property
    @override
    def headers(self) -> dict[str, str]:
        return {"Content-Range": f"bytes */{self.size}"}


class FileInvalidKeyError(FileError):
    status_code = 500

    @property
    @override
    def detail(self) -> str:
        return "Invalid key format"


class FileStorageError(FileError):
    status_code = 500

    @property
    @override
    def detail(self) -> str:
        return "Internal i/o error"


def _handle_file_error(_: Request, exc: FileError, /) -> PlainTextResponse:
    return PlainTextResponse(
        exc.detail, status_code=exc.status_code, headers=exc.headers
    )


exception_handlers = [(FileError, _handle_file_error)]
