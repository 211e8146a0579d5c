# menu_portal/utils/logging_setup.py
import logging
from logging.handlers import RotatingFileHandler
from menu_portal.config import Settings

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

def init_logging(settings: Settings):
    """Console logging for the package, plus a rotating file when LOG_FILE is set."""
    logger = logging.getLogger("menu_portal")
    if getattr(logger, "_portal_configured", False):
        return logger

    logger.setLevel(settings.LOG_LEVEL.upper())
    fmt = logging.Formatter(_FORMAT)

    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    logger.addHandler(sh)

    if settings.LOG_FILE:
        try:
            fh = RotatingFileHandler(settings.LOG_FILE, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
            fh.setFormatter(fmt)
            logger.addHandler(fh)
        except OSError as e:
            logger.warning("File logging disabled (%s): %s", settings.LOG_FILE, e)

    logger._portal_configured = True
    logger.info("Logging ready (level=%s)", settings.LOG_LEVEL.upper())
    return logger
