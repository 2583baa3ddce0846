"""
Тесты для SQLite Workspace Manager.

=== НАЗНАЧЕНИЕ ===
Pytest-набор тестов для проверки компонентов системы:
- test_sqlite_store.py - хранилище SQLite (запросы, транзакции, кэш)
- test_database_manager.py - реестр управляемых баз
- test_file_filter.py - шаблоны и исключения
- test_watcher.py - опрос файловой системы и события
- test_orchestrator.py - жизненный цикл сервера и агрегированное состояние
- test_handlers.py - протокол запрос/ответ

=== ЗАПУСК ===

    # Все тесты
    pytest tests -v

    # Конкретный файл
    pytest tests/test_watcher.py -v

=== КОНФИГУРАЦИЯ ===
См. conftest.py для fixtures (короткие интервалы опроса, временные папки).
"""
