"""Run the API server: ``python -m cadence``."""

from __future__ import annotations

import uvicorn

from cadence.app import app
from cadence.core.config import settings


def main() -> None:
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
