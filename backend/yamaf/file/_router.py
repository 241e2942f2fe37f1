import html
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import HTMLResponse, StreamingResponse

from ._config import Config, get_config
from ._models import UploadedFile
from ._multipart import make_multipart_reader
from ._service import open_download, upload_files
from .driver import Driver, get_driver

router = APIRouter()


@router.post(
    "/",
    description="Upload one or more files as multipart/form-data.",
    response_class=HTMLResponse,
)
async def _upload_files(
    *,
    request: Request,
    config: Annotated[Config, Depends(get_config)],
    driver: Annotated[Driver, Depends(get_driver)],
) -> HTMLResponse:
    reader = make_multipart_reader(request, max_body_size=config.max_body_size)
    uploaded_files = await upload_files(reader.fields(), config=config, driver=driver)
    return HTMLResponse(_render_uploaded_files(uploaded_files))


@router.get(
    # Any path reaches the handler so that every miss gets the same 404.
    "/{filename:path}",
    description="Download a stored file.",
    response_class=StreamingResponse,
    responses={200: {"content": {"*/*": {}}}, 206: {"content": {"*/*": {}}}},
)
async def _download_file(
    *,
    filename: str,
    range_: Annotated[str | None, Header(alias="range")] = None,
    config: Annotated[Config, Depends(get_config)],
    driver: Annotated[Driver, Depends(get_driver)],
) -> StreamingResponse:
    download = await open_download(
        filename, range_header=range_, chunk_size=config.chunk_size, driver=driver
    )
    return StreamingResponse(
        download.content, status_code=download.status_code, headers=download.headers
    )


def _render_uploaded_files(uploaded_files: list[UploadedFile], /) -> str:
    links = [
        f'<a href="{html.escape(f.url)}">{html.escape(f.url)}</a>'
        f" (size ~ {f.size_kib:.2f}k)"
        for f in uploaded_files
    ]
    return "Here are your file(s):<br>" + "<br>".join(links)
