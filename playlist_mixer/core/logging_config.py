import logging
import sys

# Chatty third-party loggers kept at WARNING unless the app itself runs at DEBUG
NOISY_LOGGERS = ("urllib3",)


def configure_logging(level: int | str = logging.INFO) -> None:
    """
    Configure root logging for the CLI run.

    - Logs go to stdout, interleaved with the prompts
    - `level` may be a name from the config file ("DEBUG", "info", ...)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    root = logging.getLogger()

    # Avoid adding handlers multiple times
    if root.handlers:
        root.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(handler)
    root.setLevel(level)
