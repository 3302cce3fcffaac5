import uvicorn

from ipweather.core.app_factory import create_app
from ipweather.core.config import settings

app = create_app()


def run() -> None:
    """Serve the app with uvicorn on the configured address."""
    uvicorn.run(app, host=settings.app.host, port=settings.app.port, log_config=None)


if __name__ == "__main__":
    run()
