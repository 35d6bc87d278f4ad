import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from herbal_backend.app import create_app
from herbal_backend.config import ConfigError, Settings
from herbal_backend.utils.logging_setup import configure_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the herbal remedy API server.")
    parser.add_argument("--host", default=None, help="Bind address (defaults to HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port (defaults to PORT or 5001)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    logger = configure_logging()
    args = parse_args(argv)
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        logger.critical({"function": "startup", "message": str(e)})
        return 1

    host = args.host or settings.host
    port = args.port or settings.port
    app = create_app(settings)
    logger.info({
        "function": "startup",
        "message": f"Server is running in {settings.environment} mode on port {port}",
        "api": f"http://localhost:{port}/api",
    })
    uvicorn.run(app, host=host, port=port, log_level=logging.getLevelName(logger.level).lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
