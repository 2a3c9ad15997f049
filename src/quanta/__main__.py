"""Quanta Admin entrypoint.

Run with:
  python -m quanta
"""

import logging
import os

import uvicorn


def main() -> None:
    logging.basicConfig(
        level=os.getenv("QUANTA_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.getenv("QUANTA_HOST", "127.0.0.1")
    port = int(os.getenv("QUANTA_PORT", "8000"))
    reload = os.getenv("QUANTA_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("quanta.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
