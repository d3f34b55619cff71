"""
Gantry Controller - Main entry point.
"""

import logging
import os
import sys

from controller.src.config import get_settings
from controller.src.worker import run_worker

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)

logger = logging.getLogger(__name__)

def main():
    """Main entry point."""
    settings = get_settings()

    logger.info("Starting Gantry Controller")
    logger.info(f"Build root: {settings.build_root}")
    logger.info(f"Redis URL: {settings.redis_url}")

    try:
        os.makedirs(settings.build_root, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create build root: {e}")
        sys.exit(1)

    # Start worker
    logger.info("Starting worker...")
    run_worker()

if __name__ == "__main__":
    main()
