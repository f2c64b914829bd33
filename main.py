"""
Command-line entry point: load settings, build the app, serve it.

Configuration errors are fatal and reported before anything binds.
"""

import sys

import uvicorn

from app import create_app
from config import load_settings
from errors import ConfigurationError
from shared.logging import configure_structlog, get_logger


def main() -> int:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        # LoggingSettings never loaded, so fall back to console defaults
        configure_structlog()
        get_logger(__name__).error("configuration_invalid", error=str(e))
        return 1

    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.server.bind_host,
        port=settings.server.bind_port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
