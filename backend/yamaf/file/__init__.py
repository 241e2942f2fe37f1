from ._config import Config as Config
from ._config import get_config as get_config
from ._exception import FileError as FileError
from ._exception import exception_handlers as exception_handlers
from ._models import Download as Download
from ._models import UploadedFile as UploadedFile
from ._multipart import MultipartField as MultipartField
from ._multipart import MultipartReader as MultipartReader
from ._router import router as router
from ._service import open_download as open_download
from ._service import upload_files as upload_files
