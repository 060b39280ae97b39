"""Entry point for running RollingXO via ``python -m rollingxo``."""

from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
    """Start the FastAPI-powered RollingXO web server."""

    logging.basicConfig(
        level=os.environ.get("ROLLINGXO_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.environ.get("ROLLINGXO_HOST", "0.0.0.0")
    port = int(os.environ.get("ROLLINGXO_PORT", "8000"))
    uvicorn.run("rollingxo.api:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
