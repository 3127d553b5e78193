from prometheus_fastapi_instrumentator import Instrumentator

from worklog.core.config import settings
from worklog.core.logging import setup_logging
from . import app as api_app

setup_logging()
app = api_app
instrumentator = Instrumentator(excluded_handlers=["/health", "/metrics"])
instrumentator.instrument(app).expose(app, include_in_schema=False)


def run() -> None:
    import uvicorn

    uvicorn.run("worklog.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
