#!/usr/bin/env python3
"""Startup script for the SkillSwap bot."""

import sys
import logging

from skillswap.config import config

# Configure logging before the bot imports
logging.basicConfig(
    level=getattr(logging, config.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler("skillswap.log", encoding="utf-8"),
    ],
)
logger = logging.getLogger("skillswap")


def main() -> int:
    """Main entry point."""
    logger.info("Starting SkillSwap bot...")

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Config error: {error}")
        logger.error("Please check your .env file")
        return 1

    logger.info("Configuration validated")
    logger.info(f"Backend: {config.supabase_url}")
    logger.info(f"Match threshold: {config.match_threshold}")
    logger.info(f"Cache default TTL: {config.cache_default_ttl_seconds:.0f}s")
    logger.info(f"Scheduler interval: {config.scheduler_interval_seconds}s")

    from skillswap.bot.client import run_bot

    try:
        run_bot()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
