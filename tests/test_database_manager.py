"""
Тесты реестра управляемых баз (DatabaseManager)
"""
import os

import pytest

from workspace_manager.application.databases import (
    SCHEMA_VERSION,
    DatabaseManager,
    DatabaseManagerConfig,
    DatabaseManagerListener,
)
from workspace_manager.domain.databases import (
    AddDatabaseError,
    DatabaseConnectionError,
    DatabaseStatus,
    InitializationError,
    InvalidStatusTransition,
    MutableFields,
    NotFoundError,
)
from tests.conftest import create_sqlite_db


class RecordingListener(DatabaseManagerListener):
    def __init__(self):
        self.events = []

    def on_database_added(self, record):
        self.events.append(("added", record.path))

    def on_database_changed(self, record):
        self.events.append(("changed", record.path, record.status))

    def on_database_removed(self, path, previous_status):
        self.events.append(("removed", path, previous_status))

    def on_cleanup(self):
        self.events.append(("cleanup",))


@pytest.fixture
def listener(database_manager):
    recorder = RecordingListener()
    database_manager.subscribe(recorder)
    return recorder


class TestInitialization:
    """initialize() и системная конфигурация"""

    def test_seeds_system_config(self, database_manager):
        assert database_manager.is_initialized()
        assert database_manager.get_system_config("server_id").value == "test-server"
        assert database_manager.get_system_config("schema_version").value == {"version": SCHEMA_VERSION}
        status = database_manager.get_system_config("initialization_status").value
        assert status["status"] == "completed"

    def test_initialize_is_idempotent(self, database_manager):
        database_manager.initialize()
        assert database_manager.is_initialized()

    def test_system_config_roundtrip(self, database_manager):
        value = {"paths": ["/a", "/b"], "enabled": True, "limit": 3}
        database_manager.set_system_config("watch", value)
        assert database_manager.get_system_config("watch").value == value
        assert database_manager.get_system_config("missing") is None

    def test_failure_is_wrapped(self, tmp_path):
        # Каталог вместо файла: SQLite не сможет открыть базу
        manager = DatabaseManager(DatabaseManagerConfig(core_path=str(tmp_path)))
        with pytest.raises(InitializationError) as exc_info:
            manager.initialize()
        assert exc_info.value.code == "INIT_ERROR"
        assert not manager.is_initialized()

    def test_registry_survives_restart(self, core_db_path, tmp_path):
        target = create_sqlite_db(tmp_path / "data" / "app.db")

        first = DatabaseManager(DatabaseManagerConfig(core_path=core_db_path))
        first.initialize()
        first.add_managed_database(str(target), 10)
        first.cleanup()

        second = DatabaseManager(DatabaseManagerConfig(core_path=core_db_path))
        second.initialize()
        try:
            assert second.get_managed_database(str(target)).status is DatabaseStatus.ACTIVE
            assert not second.is_attached(str(target))
            assert second.restore_attachments() == 1
            assert second.is_attached(str(target))
        finally:
            second.cleanup()


class TestAddDatabase:
    """add_managed_database"""

    def test_add_registers_and_attaches(self, database_manager, listener, tmp_path):
        target = str(create_sqlite_db(tmp_path / "app.db"))

        record = database_manager.add_managed_database(target, 4096)

        assert record.path == target
        assert record.name == "app.db"
        assert record.size == 4096
        assert record.status is DatabaseStatus.ACTIVE
        assert database_manager.is_attached(target)
        assert [db.path for db in database_manager.list_managed_databases()] == [target]
        assert listener.events == [("added", target)]

    def test_add_missing_file_rolls_back(self, database_manager, listener, tmp_path):
        missing = str(tmp_path / "missing.db")

        with pytest.raises(AddDatabaseError):
            database_manager.add_managed_database(missing)

        assert database_manager.get_managed_database(missing) is None
        assert not database_manager.is_attached(missing)
        assert listener.events == []

    def test_duplicate_add_fails(self, database_manager, tmp_path):
        target = str(create_sqlite_db(tmp_path / "app.db"))
        database_manager.add_managed_database(target)

        with pytest.raises(AddDatabaseError) as exc_info:
            database_manager.add_managed_database(target)
        assert "Failed to add managed database" in str(exc_info.value)

    def test_removed_path_is_not_resurrected(self, database_manager, tmp_path):
        target = str(create_sqlite_db(tmp_path / "app.db"))
        database_manager.add_managed_database(target)
        database_manager.remove_managed_database(target)

        with pytest.raises(AddDatabaseError):
            database_manager.add_managed_database(target)

        assert database_manager.get_managed_database(target).status is DatabaseStatus.REMOVED
        assert not database_manager.is_attached(target)


class TestUpdateDatabase:
    """update_managed_database"""

    def test_update_size(self, database_manager, listener, tmp_path):
        target = str(create_sqlite_db(tmp_path / "app.db"))
        database_manager.add_managed_database(target, 10)

        record = database_manager.update_managed_database(target, MutableFields(size=20))

        assert record.size == 20
        assert listener.events[-1] == ("changed", target, DatabaseStatus.ACTIVE)

    def test_update_unknown_path_is_noop(self, database_manager, listener):
        assert database_manager.update_managed_database("/nope.db", MutableFields(size=1)) is None
        assert listener.events == []

    def test_empty_update_touches_record(self, database_manager, tmp_path):
        target = str(create_sqlite_db(tmp_path / "app.db"))
        database_manager.add_managed_database(target, 10)

        record = database_manager.update_managed_database(target, MutableFields())
        assert record.size == 10
        assert record.last_modified is not None

    def test_leaving_active_detaches(self, database_manager, tmp_path):
        target = str(create_sqlite_db(tmp_path / "app.db"))
        database_manager.add_managed_database(target)

        database_manager.update_managed_database(target, MutableFields(status=DatabaseStatus.INACTIVE))
        assert not database_manager.is_attached(target)
        with pytest.raises(NotFoundError):
            database_manager.get_database_info(target)

        database_manager.update_managed_database(target, MutableFields(status=DatabaseStatus.ACTIVE))
        assert database_manager.is_attached(target)

    def test_status_removed_only_through_remove(self, database_manager, tmp_path):
        target = str(create_sqlite_db(tmp_path / "app.db"))
        database_manager.add_managed_database(target)

        with pytest.raises(InvalidStatusTransition):
            database_manager.update_managed_database(target, MutableFields(status=DatabaseStatus.REMOVED))
        assert database_manager.get_managed_database(target).status is DatabaseStatus.ACTIVE

    def test_removed_is_absorbing(self, database_manager, tmp_path):
        target = str(create_sqlite_db(tmp_path / "app.db"))
        database_manager.add_managed_database(target)
        database_manager.remove_managed_database(target)

        with pytest.raises(InvalidStatusTransition):
            database_manager.update_managed_database(target, MutableFields(status=DatabaseStatus.ACTIVE))

    def test_removed_record_ignores_updates(self, database_manager, listener, tmp_path):
        target = str(create_sqlite_db(tmp_path / "app.db"))
        database_manager.add_managed_database(target, 10)
        database_manager.remove_managed_database(target)
        events = list(listener.events)

        assert database_manager.update_managed_database(target, MutableFields(size=99)) is None

        assert listener.events == events
        record = database_manager.get_managed_database(target)
        assert record.size == 10
        assert record.status is DatabaseStatus.REMOVED
        assert not database_manager.is_attached(target)


class TestRemoveDatabase:
    """remove_managed_database"""

    def test_remove_is_soft(self, database_manager, listener, tmp_path):
        target = str(create_sqlite_db(tmp_path / "app.db"))
        database_manager.add_managed_database(target)

        database_manager.remove_managed_database(target)

        assert database_manager.list_managed_databases() == []
        assert database_manager.count_managed_databases() == 0
        assert database_manager.get_managed_database(target).status is DatabaseStatus.REMOVED
        assert not database_manager.is_attached(target)
        with pytest.raises(NotFoundError):
            database_manager.get_database_info(target)
        assert listener.events[-1] == ("removed", target, DatabaseStatus.ACTIVE)

    def test_remove_is_idempotent(self, database_manager, listener, tmp_path):
        target = str(create_sqlite_db(tmp_path / "app.db"))
        database_manager.add_managed_database(target)

        database_manager.remove_managed_database(target)
        database_manager.remove_managed_database(target)
        database_manager.remove_managed_database("/never/seen.db")

        assert listener.events[-2:] == [
            ("removed", target, DatabaseStatus.REMOVED),
            ("removed", "/never/seen.db", None),
        ]
        assert database_manager.get_managed_database("/never/seen.db") is None


class TestQueries:
    """list/count/get_database_info"""

    def test_list_newest_first(self, database_manager, tmp_path):
        paths = [str(create_sqlite_db(tmp_path / f"db{i}.db")) for i in range(3)]
        for path in paths:
            database_manager.add_managed_database(path)

        listed = [db.path for db in database_manager.list_managed_databases()]
        assert listed == list(reversed(paths))
        assert database_manager.count_managed_databases() == 3

    def test_database_info_counts_rows(self, database_manager, tmp_path):
        target = str(create_sqlite_db(tmp_path / "app.db", rows=5))
        database_manager.add_managed_database(target)

        tables = database_manager.get_database_info(target)

        assert [(t.name, t.row_count) for t in tables] == [("items", 5)]
        assert "CREATE TABLE" in tables[0].sql
        assert tables[0].as_dict() == {"name": "items", "rowCount": 5}

    def test_database_info_unknown_path(self, database_manager):
        with pytest.raises(NotFoundError) as exc_info:
            database_manager.get_database_info("/nope.db")
        assert exc_info.value.code == "DATABASE_NOT_FOUND"


class TestAttachments:
    """restore_attachments и cleanup"""

    def test_restore_marks_unreadable_as_error(self, core_db_path, tmp_path):
        target = create_sqlite_db(tmp_path / "app.db")
        manager = DatabaseManager(DatabaseManagerConfig(core_path=core_db_path))
        manager.initialize()
        manager.add_managed_database(str(target))
        manager.cleanup()

        os.remove(target)

        manager.initialize()
        try:
            assert manager.restore_attachments() == 0
            assert manager.get_managed_database(str(target)).status is DatabaseStatus.ERROR
            assert manager.count_managed_databases() == 1
        finally:
            manager.cleanup()

    def test_cleanup_closes_everything(self, core_db_path, tmp_path):
        manager = DatabaseManager(DatabaseManagerConfig(core_path=core_db_path))
        listener = RecordingListener()
        manager.subscribe(listener)
        manager.initialize()
        for i in range(2):
            manager.add_managed_database(str(create_sqlite_db(tmp_path / f"db{i}.db")))

        manager.cleanup()

        assert manager.attached_paths() == []
        assert not manager.is_initialized()
        assert not manager.core_db.is_connected()
        assert listener.events[-1] == ("cleanup",)

    def test_cleanup_survives_failed_close(self, core_db_path, tmp_path):
        class BrokenConnection:
            def disconnect(self):
                raise DatabaseConnectionError("close failed", code="DISCONNECT_ERROR", operation="disconnect")

        manager = DatabaseManager(DatabaseManagerConfig(core_path=core_db_path))
        listener = RecordingListener()
        manager.subscribe(listener)
        manager.initialize()
        for i in range(2):
            manager.add_managed_database(str(create_sqlite_db(tmp_path / f"db{i}.db")))
        connections = list(manager._attached.values())
        # Сломанное соединение первым: остальные всё равно должны закрыться
        manager._attached = {"/broken.db": BrokenConnection(), **manager._attached}

        manager.cleanup()

        assert all(not connection.is_connected() for connection in connections)
        assert manager.attached_paths() == []
        assert not manager.is_initialized()
        assert not manager.core_db.is_connected()
        assert listener.events[-1] == ("cleanup",)
