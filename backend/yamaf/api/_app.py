import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from yamaf import file

from ._config import Config
from ._router import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(_app: FastAPI) -> AsyncIterator[dict[str, Any]]:
    api_config = Config()
    file_config = file.Config()
    file_driver_config = file.driver.Config()

    logger.info(
        "Serving files from '%s' as %s",
        file_driver_config.file_system_dir,
        file_config.external_base_url,
    )

    # These must not be accessed directly, they must
    # be accessed through lifetime dependencies.
    yield {
        "api_config": api_config,
        "file_config": file_config,
        "file_driver_config": file_driver_config,
    }


app = FastAPI(lifespan=_lifespan)

# The API router goes first so that its fixed paths win over "/{filename}".
app.include_router(router)
app.include_router(file.router)

for exception, handler in file.exception_handlers:
    app.add_exception_handler(exception, handler)  # type: ignore[arg-type]  # https://github.com/encode/starlette/discussions/2391, https://github.com/encode/starlette/pull/2403
