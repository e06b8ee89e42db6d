"""
Hello world web server.

systemd starts this file directly with the virtualenv interpreter, so it
only imports third-party packages and never the rest of ``hello_service``.
"""

import logging
import os

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)

GREETING = "Hello, world!"


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(title="Hello Service", docs_url=None, redoc_url=None)

    @app.get("/", response_class=PlainTextResponse)
    async def hello() -> str:
        return GREETING

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app


def run(host: str = "0.0.0.0", port: int = 80, log_level: str = "info") -> None:
    """Serve in the foreground until the process is stopped."""
    logger.info("Listening on %s:%d", host, port)
    uvicorn.run(create_app(), host=host, port=port, log_level=log_level)


def main() -> None:
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
    run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "80")),
        log_level=os.environ.get("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
