import logging

# Global project logger (can be tuned via logging_config)
logger = logging.getLogger("spotify_playlist_mixer")


def log_section(title: str) -> None:
    """
    Log a top-level section header.
    """
    logger.info("=== %s ===", title)


def log_info(message: str) -> None:
    logger.info("%s", message)


def log_step(message: str) -> None:
    """
    Action step / ongoing work.
    """
    logger.info("→ %s", message)


def log_success(message: str) -> None:
    logger.info("✅ %s", message)


def log_warning(message: str) -> None:
    """
    Warning / non-fatal problem.
    """
    logger.warning("⚠️ %s", message)


def log_error(message: str) -> None:
    """
    Error / fatal problem.
    """
    logger.error("❌ %s", message)
