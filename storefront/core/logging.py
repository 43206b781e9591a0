import logging

from storefront.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once at startup (LOG_LEVEL from settings)."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
    # SQL echo is too chatty outside of debugging sessions
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
