from __future__ import annotations

import logging

import uvicorn

from .config import load_settings
from .server import create_app
from .service import ScanOrchestrator


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    app = create_app(ScanOrchestrator(settings), settings)
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
