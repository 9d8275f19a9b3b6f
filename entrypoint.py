import os

import uvicorn

from logging_config import get_logger, setup_logging

# Logging must be configured before app is imported, app logs while building
setup_logging(log_level=os.getenv("LOG_LEVEL", "INFO"), log_file=os.getenv("LOG_FILE", None))
logger = get_logger(__name__)


def main():
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 8000))
    reload = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")
    logger.info(f"Starting relaychat server on {host}:{port} (reload={reload})")
    # An import string is required for reload
    uvicorn.run("app:app", host=host, port=port, reload=reload, log_config=None)


if __name__ == "__main__":
    main()
