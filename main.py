"""
Main entrypoint: Lumina FastAPI server.

Creates ledger tables, then serves the API with uvicorn in the main thread.
The catalog client is opened and closed by the app lifespan.

Env: AUDIUS_API_URL, AUDIUS_API_KEY, LUMINA_DB_URL or LEDGER_DB_PATH, API_HOST, API_PORT, LOG_LEVEL.

Equivalent: uvicorn lumina.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os

# Configure structured JSON logging before other imports that may log
from lumina.lumina_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Load .env, initialise the ledger and run the FastAPI server."""
    from lumina.config import get_settings
    from lumina.config.env import load_lumina_env
    from lumina.ledger import init_db

    load_lumina_env()
    settings = get_settings()
    api_host, api_port = settings.api_host, settings.api_port

    init_db()
    logger.info("main_ledger_ready", catalog_url=settings.audius_api_url)

    from lumina.api_server.app import app
    import uvicorn

    logger.info("main_server_starting", host=api_host, port=api_port)
    uvicorn.run(app, host=api_host, port=api_port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
