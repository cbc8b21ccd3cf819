# backend/catalogue/utils/logging.py
import logging
import sys
from logging.handlers import RotatingFileHandler
from ..config import settings

LOG_DIR = settings.STORAGE_PATH / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s [%(module)s:%(lineno)d] - %(message)s'
COLOR_LOG_FORMAT = (
    '\033[1;36m%(asctime)s\033[0m - \033[1;33m%(name)s\033[0m - \033[1;35m%(levelname)s\033[0m '
    '[\033[1;34m%(module)s:%(lineno)d\033[0m] - %(message)s'
)

# Attributes every LogRecord carries; anything else arrived through `extra`
RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {'message', 'asctime', 'taskName'}


class ContextFormatter(logging.Formatter):
    """Appends a record's structured `extra` fields as key=value pairs"""

    def format(self, record):
        line = super().format(record)
        context = {k: v for k, v in vars(record).items() if k not in RESERVED_ATTRS}
        if context:
            line += ' | ' + ' '.join(f'{key}={value!r}' for key, value in sorted(context.items()))
        return line


class CatalogueLogger:
    """Logger wrapper that protects reserved LogRecord attributes in `extra`"""
    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(settings.LOG_LEVEL.upper())
        self.reserved_attrs = RESERVED_ATTRS
        self.setup_handlers()

    def setup_handlers(self):
        """Set up file and console handlers"""
        if self.logger.handlers:
            return

        file_handler = RotatingFileHandler(
            LOG_DIR / f"{self.logger.name}.log",
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(ContextFormatter(LOG_FORMAT))
        self.logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_format = COLOR_LOG_FORMAT if sys.stdout.isatty() else LOG_FORMAT
        console_handler.setFormatter(ContextFormatter(console_format))
        self.logger.addHandler(console_handler)

    def _sanitize_extra(self, extra):
        """Rename extra keys that would clash with reserved attributes"""
        if extra is None:
            return None

        return {
            f"extra_{key}" if key in self.reserved_attrs else key: value
            for key, value in extra.items()
        }

    def debug(self, msg, extra=None, exc_info=None):
        self.logger.debug(msg, extra=self._sanitize_extra(extra), exc_info=exc_info)

    def info(self, msg, extra=None, exc_info=None):
        self.logger.info(msg, extra=self._sanitize_extra(extra), exc_info=exc_info)

    def warning(self, msg, extra=None, exc_info=None):
        self.logger.warning(msg, extra=self._sanitize_extra(extra), exc_info=exc_info)

    def error(self, msg, extra=None, exc_info=None):
        self.logger.error(msg, extra=self._sanitize_extra(extra), exc_info=exc_info)

    def critical(self, msg, extra=None, exc_info=None):
        self.logger.critical(msg, extra=self._sanitize_extra(extra), exc_info=exc_info)

api_logger = CatalogueLogger("api")
pipeline_logger = CatalogueLogger("pipeline")
db_logger = CatalogueLogger("database")
service_logger = CatalogueLogger("service")

__all__ = ["api_logger", "pipeline_logger", "db_logger", "service_logger"]
