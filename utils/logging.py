"""
Настройка логирования для приложения
"""

import logging
import sys
from pythonjsonlogger import jsonlogger

from settings import Settings, settings


def setup_logging(app_settings: Settings = settings):
    """Настраивает логирование для всего приложения"""
    level = getattr(logging, app_settings.LOG_LEVEL.upper(), logging.INFO)

    # Получаем корневой logger
    logger = logging.getLogger()
    logger.setLevel(level)

    # Очищаем существующие handlers
    logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    # Формат логов
    if app_settings.ENVIRONMENT == 'production':
        # JSON формат для production
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(name)s %(levelname)s %(threadName)s %(message)s',
            timestamp=True
        )
    else:
        # Читаемый формат для development
        formatter = logging.Formatter(
            app_settings.LOG_FORMAT,
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Трассировка SQL (SQLITE_VERBOSE) пишется на DEBUG, остальное ей не мешает
    if not app_settings.SQLITE_VERBOSE:
        logging.getLogger('workspace_manager.infrastructure.database').setLevel(max(level, logging.INFO))


def get_logger(name: str) -> logging.Logger:
    """Получить logger для модуля"""
    return logging.getLogger(name)
