"""Run the web app. Run from project root: python web/run_api.py"""
import logging
import sys
from pathlib import Path

# Add project root to path so config and db imports work
_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_root))

import uvicorn

import config

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("webapp")

if __name__ == "__main__":
    logger.info("Starting application in env %r", config.APP_ENV)
    logger.info("Configuration loaded successfully:\n%s", config.settings.format_for_logging())
    uvicorn.run(
        "web.api.main:app",
        host="0.0.0.0",
        port=config.settings.http_port,
        reload=config.APP_ENV == "local",
    )
