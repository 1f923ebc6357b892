"""
Main FastAPI application entry point.

Following kkb_fastapi pattern.
"""
import logging
import os

import uvicorn

from carbonnet.create_app import get_app
from carbonnet.utils.constants import ConfigFile

logging.basicConfig(level=logging.DEBUG)

app = get_app(os.environ.get("CONFIG_FILE", ConfigFile.DEVELOPMENT))


if __name__ == "__main__":
    try:
        uvicorn.run(
            app,
            host="0.0.0.0",
            port=int(os.environ.get("PORT", 8000)),
            log_level="debug",
            loop="asyncio",
        )
    except Exception as e:
        logging.error(f"Error running FastAPI: {e}")
