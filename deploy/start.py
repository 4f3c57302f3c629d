#!/usr/bin/env python
"""
Container startup script for the media relay.
Honors the PORT environment variable set by the hosting platform.
"""
import logging
import os
import sys

import uvicorn

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("start")


def main():
    """Start the FastAPI application on $PORT"""
    port_str = os.environ.get("PORT", "3000")
    try:
        port = int(port_str)
    except ValueError:
        logger.error(f"Invalid PORT value: '{port_str}'. Using default 3000.")
        port = 3000

    host = os.environ.get("HOST", "0.0.0.0")
    logger.info(f"Starting server on {host}:{port}")

    try:
        uvicorn.run("src.main:app", host=host, port=port, log_level="info")
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
