"""Configuración de logging para la calculadora."""

import logging
import sys
from datetime import datetime


ROOT_LOGGER = "calculadora"


class StructuredFormatter(logging.Formatter):
    """Formato: marca de tiempo, nivel, módulo y mensaje."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        return f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"


def setup_logging(level: str = "WARNING", log_file: str | None = None) -> logging.Logger:
    """Configura el logger raíz de la calculadora.

    Args:
        level: nivel de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: ruta opcional de un archivo de log; sin ella se usa stderr.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
