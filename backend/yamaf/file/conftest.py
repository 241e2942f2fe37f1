from collections.abc import Callable

import pytest

BOUNDARY = "yamaf-test-boundary"

MultipartEncoder = Callable[[list[tuple[str, str | None, bytes]]], bytes]


@pytest.fixture
def encode_multipart() -> MultipartEncoder:
    """Encodes (name, filename, content) parts in the given order."""

    def encode(parts: list[tuple[str, str | None, bytes]]) -> bytes:
        body = b""
        for name, filename, content in parts:
            disposition = f'form-data; name="{name}"'
            if filename is not None:
                disposition += f'; filename="{filename}"'
            body += f"--{BOUNDARY}\r\nContent-Disposition: {disposition}\r\n".encode()
            if filename is not None:
                body += b"Content-Type: application/octet-stream\r\n"
            body += b"\r\n" + content + b"\r\n"
        return body + f"--{BOUNDARY}--\r\n".encode()

    return encode
