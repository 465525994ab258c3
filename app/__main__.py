"""Run the API with uvicorn: `python -m app`."""

import logging

import uvicorn

from app.app import create_app
from app.config import load_settings
from app.logging_config import configure_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    logger.info("starting on %s:%d database=%s", settings.host, settings.port, settings.database_url)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
