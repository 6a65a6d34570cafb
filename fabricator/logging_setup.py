import logging

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(
            f"Logging setup: unknown log level '{level}'. "
            "Fix: use DEBUG, INFO, WARNING, ERROR or CRITICAL."
        )
    logging.basicConfig(level=numeric, format=LOG_FORMAT, force=True)
