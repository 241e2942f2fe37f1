from ._app import app as app
from ._config import Config as Config
from ._config import get_config as get_config
from ._router import router as router
