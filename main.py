#!/usr/bin/env python3
"""
SQLite Workspace Manager - мониторинг SQLite-баз в отслеживаемых папках
"""
import signal
import sys
import time

from settings import settings
from utils.logging import setup_logging, get_logger
from workspace_manager.application.bootstrap import build_workspace_manager

# Как часто писать строку статуса в лог (секунды)
STATUS_LOG_INTERVAL = 60

logger = get_logger("workspace-manager")

# Флаг для graceful shutdown
shutdown_requested = False


def signal_handler(signum, frame):
    """Обработчик сигналов для graceful shutdown"""
    global shutdown_requested
    logger.info(f"Received signal {signum}, initiating graceful shutdown...")
    shutdown_requested = True


def log_banner():
    logger.info("=" * 60)
    logger.info(f"{settings.APP_NAME} v{settings.VERSION} Starting")
    logger.info("=" * 60)
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Core database: {settings.CORE_DB_PATH}")
    logger.info(f"Watch paths: {settings.split_list(settings.WATCH_PATHS) or '(none)'}")
    logger.info(f"Patterns: {settings.WATCH_PATTERNS}")
    logger.info(f"Ignored: {settings.WATCH_IGNORED}")
    logger.info(f"Poll interval: {settings.POLL_INTERVAL}s, stability: {settings.STABILITY_THRESHOLD}s")
    logger.info("=" * 60)


def main():
    """Главный цикл workspace manager"""
    global shutdown_requested

    setup_logging()

    # Регистрируем обработчики сигналов
    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    log_banner()

    try:
        server = build_workspace_manager(settings)
        server.start()
    except Exception as e:
        logger.error(f"❌ Failed to start workspace manager: {e}", exc_info=True)
        sys.exit(1)

    # Основной цикл: работа идёт в потоке watcher'а, здесь только статус
    last_status = time.monotonic()
    while not shutdown_requested:
        time.sleep(0.5)
        if time.monotonic() - last_status >= STATUS_LOG_INTERVAL:
            state = server.get_state()
            logger.info(
                f"status={state.status.value} databases={state.database_count} "
                f"paths={len(state.watched_paths)} uptime={server.get_uptime():.0f}s"
            )
            last_status = time.monotonic()

    try:
        server.stop()
    except Exception as e:
        logger.error(f"❌ Error during shutdown: {e}", exc_info=True)
        sys.exit(1)

    logger.info("=" * 60)
    logger.info(f"{settings.APP_NAME} Stopped")
    logger.info("=" * 60)


if __name__ == "__main__":
    main()
