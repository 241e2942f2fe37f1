from typing import Annotated, assert_never

from fastapi import Depends

from ._config import Config, get_config
from ._driver import Driver
from ._filesystem import FileSystemDriver


def get_driver(*, config: Annotated[Config, Depends(get_config)]) -> Driver:
    """A dependency."""
    match config.type:
        case "file-system":
            return FileSystemDriver(file_system_dir=config.file_system_dir)
        case _:
            assert_never(config.type)
