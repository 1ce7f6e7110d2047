"""Entry point for running the Talenta API with Uvicorn."""
from __future__ import annotations

import os

import uvicorn

from talenta.config import get_settings


def main() -> None:
  settings = get_settings()
  port = int(os.getenv("TALENTA_PORT", "8000"))
  reload = os.getenv("UVICORN_RELOAD", "false").lower() == "true"
  uvicorn.run(
    "talenta.main:app",
    host=os.getenv("TALENTA_HOST", "0.0.0.0"),
    port=port,
    reload=reload,
    log_level=settings.log_level.lower(),
  )


if __name__ == "__main__":
  main()
