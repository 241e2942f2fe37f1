from collections import deque
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import TypeAlias

from python_multipart import MultipartParser
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import parse_options_header
from starlette.requests import Request

from ._exception import FileMalformedUploadError, FileUploadTooLargeError


@dataclass(frozen=True)
class _PartBegin:
    name: str | None
    filename: str | None


@dataclass(frozen=True)
class _PartData:
    data: bytes


@dataclass(frozen=True)
class _PartEnd: ...


_Event: TypeAlias = _PartBegin | _PartData | _PartEnd


class MultipartField:
    def __init__(
        self, reader: "MultipartReader", /, *, name: str | None, filename: str | None
    ) -> None:
        self._reader = reader
        self._is_exhausted = False
        self.name = name
        self.filename = filename

    async def chunks(self) -> AsyncIterator[bytes]:
        while not self._is_exhausted:
            match await self._reader._next_event():
                case _PartData(data=data):
                    if data:
                        yield data
                case _PartEnd():
                    self._is_exhausted = True
                case _PartBegin() | None:
                    raise FileMalformedUploadError("part is not terminated")

    async def read(self) -> bytes:
        return b"".join([chunk async for chunk in self.chunks()])


class MultipartReader:
    """Pulls multipart/form-data fields out of a body stream one at a time.

    Only as much of the body is read as is needed to produce the next event,
    so field contents are never buffered beyond a single body chunk. Moving
    to the next field discards whatever is left of the current one.
    """

    def __init__(
        self,
        stream: AsyncIterator[bytes],
        /,
        *,
        boundary: bytes,
        max_body_size: int,
    ) -> None:
        self._stream = stream
        self._max_body_size = max_body_size
        self._body_size = 0
        self._events: deque[_Event] = deque()
        self._current_field: MultipartField | None = None
        self._is_stream_exhausted = False
        self._is_complete = False
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._headers: dict[bytes, bytes] = {}
        self._parser = MultipartParser(
            boundary,
            callbacks={
                "on_part_begin": self._on_part_begin,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
                "on_end": self._on_end,
            },
        )

    async def next_field(self) -> MultipartField | None:
        if self._current_field is not None:
            async for _ in self._current_field.chunks():
                pass
            self._current_field = None

        while (event := await self._next_event()) is not None:
            match event:
                case _PartBegin(name=name, filename=filename):
                    self._current_field = MultipartField(
                        self, name=name, filename=filename
                    )
                    return self._current_field
                case _PartData() | _PartEnd():
                    continue

        return None

    async def fields(self) -> AsyncIterator[MultipartField]:
        while (field := await self.next_field()) is not None:
            yield field

    async def _next_event(self) -> _Event | None:
        while not self._events:
            if self._is_stream_exhausted:
                return None
            await self._feed()
        return self._events.popleft()

    async def _feed(self) -> None:
        try:
            chunk = await anext(self._stream)
        except StopAsyncIteration:
            self._is_stream_exhausted = True
            self._parser.finalize()
            if not self._is_complete:
                raise FileMalformedUploadError("body ended before the closing boundary")
            return

        self._body_size += len(chunk)
        if self._body_size > self._max_body_size:
            raise FileUploadTooLargeError(self._max_body_size)

        try:
            _ = self._parser.write(chunk)
        except MultipartParseError as e:
            raise FileMalformedUploadError(str(e)) from e

    def _on_part_begin(self) -> None:
        self._headers = {}

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._events.append(_PartData(data[start:end]))

    def _on_part_end(self) -> None:
        self._events.append(_PartEnd())

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        self._headers[bytes(self._header_field).lower()] = bytes(self._header_value)
        self._header_field.clear()
        self._header_value.clear()

    def _on_headers_finished(self) -> None:
        _, options = parse_options_header(self._headers.get(b"content-disposition"))
        self._events.append(
            _PartBegin(
                name=_decode_option(options.get(b"name")),
                filename=_decode_option(options.get(b"filename")),
            )
        )

    def _on_end(self) -> None:
        self._is_complete = True


def make_multipart_reader(
    request: Request, /, *, max_body_size: int
) -> MultipartReader:
    content_type, options = parse_options_header(request.headers.get("content-type"))
    if content_type.lower() != b"multipart/form-data":
        raise FileMalformedUploadError("expected a multipart/form-data body")

    boundary = options.get(b"boundary")
    if not boundary:
        raise FileMalformedUploadError("missing multipart boundary")

    content_length = request.headers.get("content-length")
    if content_length is not None and content_length.isdigit():
        if int(content_length) > max_body_size:
            raise FileUploadTooLargeError(max_body_size)

    return MultipartReader(
        request.stream(), boundary=boundary, max_body_size=max_body_size
    )


def _decode_option(value: bytes | None, /) -> str | None:
    if value is None:
        return None
    return value.decode("utf-8", errors="replace")
