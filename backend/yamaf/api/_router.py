from functools import cache
from html import escape
from string import Template
from typing import Annotated, Literal

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from yamaf import file

from ._config import Config, get_config

router = APIRouter()

_INDEX_TEMPLATE = Template("""\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>$title</title>
</head>
<body>
<h1>$title</h1>
<p>Upload files with a multipart form, every file gets its own public link:</p>
<pre>curl -F "file=@example.txt"$key_example $base_url/</pre>
<form action="/" method="post" enctype="multipart/form-data">
$key_field<input type="file" name="file" multiple required><br><br>
<input type="submit" value="Upload">
</form>
</body>
</html>
""")

_KEY_FIELD = (
    '<input type="password" name="key" placeholder="Upload Key" required><br><br>\n'
)


class HealthOut(BaseModel):
    status: Literal["ok"]


@router.get("/health")
async def get_health() -> HealthOut:
    return HealthOut(status="ok")


@router.get("/", response_class=HTMLResponse)
async def _read_index(
    *,
    config: Annotated[Config, Depends(get_config)],
    file_config: Annotated[file.Config, Depends(file.get_config)],
) -> HTMLResponse:
    return HTMLResponse(
        _render_index(
            config.title,
            base_url=file_config.external_base_url,
            requires_key=file_config.key is not None,
        )
    )


@cache
def _render_index(title: str, /, *, base_url: str, requires_key: bool) -> str:
    return _INDEX_TEMPLATE.substitute(
        title=escape(title),
        base_url=escape(base_url),
        key_example=' -F "key=&lt;upload key&gt;"' if requires_key else "",
        key_field=_KEY_FIELD if requires_key else "",
    )
