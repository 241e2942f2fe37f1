import uvicorn
from typer import Typer

from yamaf import api

app = Typer()


@app.callback()
def handle() -> None:
    """Yet another minimal anonymous filehost."""


@app.command(name="api")
def handle_api() -> None:
    config = api.Config()

    uvicorn.run(
        "yamaf.api:app",
        host=config.host,
        port=config.port,
        reload=config.reload,
        log_level=config.log_level,
    )


if __name__ == "__main__":
    app()
