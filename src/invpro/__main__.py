"""invpro entrypoint.

Run with:
  python -m invpro
"""

import logging
import os

import uvicorn


def main() -> None:
    level = os.getenv("INVPRO_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    host = os.getenv("INVPRO_HOST", "0.0.0.0")
    port = int(os.getenv("INVPRO_PORT", "8000"))
    reload = os.getenv("INVPRO_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("invpro.app:app", host=host, port=port, reload=reload, log_level=level.lower())


if __name__ == "__main__":
    main()
