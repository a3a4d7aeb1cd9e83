"""Run the HTTP shim: python -m saasdash.shim"""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

from saasdash.config import ShimSettings
from saasdash.shim.app import create_app


def main() -> None:
    load_dotenv()
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
    settings = ShimSettings()
    app = create_app(settings)
    logging.getLogger(__name__).info("HTTP wrapper running on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
