from ._config import Config as Config
from ._config import get_config as get_config
from ._driver import AsyncReadable as AsyncReadable
from ._driver import Driver as Driver
from ._driver import DriverFileError as DriverFileError
from ._driver import DriverFileExistsError as DriverFileExistsError
from ._driver import DriverFileNotFoundError as DriverFileNotFoundError
from ._driver import DriverFileTooLargeError as DriverFileTooLargeError
from ._filesystem import FileSystemDriver as FileSystemDriver
from ._service import get_driver as get_driver
