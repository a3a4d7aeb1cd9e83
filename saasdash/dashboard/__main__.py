"""Run the admin API: python -m saasdash.dashboard"""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

from saasdash.config import DashboardSettings
from saasdash.dashboard.app import create_app


def main() -> None:
    load_dotenv()
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
    settings = DashboardSettings()
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
