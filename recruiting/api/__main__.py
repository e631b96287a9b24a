"""
Run the API server.

    python -m recruiting.api [--host HOST] [--port PORT]
"""

import argparse

import structlog
import uvicorn

from recruiting.api.app import configure_logging, create_app
from recruiting.shared.config import get_settings

log = structlog.get_logger()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Recruit interview lifecycle API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)

    log.info("starting_api_server", host=args.host, port=args.port, environment=settings.environment)
    uvicorn.run(create_app(), host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
