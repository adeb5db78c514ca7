"""
Main entrypoint: serves the API; the app lifespan owns the sync engine and
the background scheduler (connectivity checks, pending-sync retries).

Usage:
    python -m expenses            # serve on API_HOST:API_PORT
    uvicorn expenses.api.main:app --host 0.0.0.0 --port 8000
"""
import logging

import uvicorn

from expenses.config import get_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    if not settings.mongo_url:
        logger.info("MONGO_URL not set, running in local-only mode.")
    uvicorn.run(
        "expenses.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
