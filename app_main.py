"""Application entry point for the quiz results service."""

from __future__ import annotations

import os
from pathlib import Path

import uvicorn

from quiz_engine.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_engine.constants.storage_constants import DEFAULT_DATA_DIR
from quiz_engine.server.api_server import create_api_app
from quiz_engine.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging and serve the results API until interrupted."""
    logger = configure_logging()
    host = os.environ.get("QUIZ_ENGINE_HOST", DEFAULT_HOST)
    port = int(os.environ.get("QUIZ_ENGINE_PORT", DEFAULT_PORT))
    data_dir = Path(os.environ.get("QUIZ_ENGINE_DATA_DIR", DEFAULT_DATA_DIR))

    logger.info("Starting quiz results service on %s:%s", host, port)
    logger.info("Storing results in %s", data_dir)
    uvicorn.run(create_api_app(data_dir), host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
