"""Unit tests for the MySQL resource store (CRUD over the fake pool)."""

from __future__ import annotations

import asyncio

import pytest
from pymysql.err import OperationalError, ProgrammingError

from mysql_storage_engine.adapters.outbound import MySQLResourceStore, mysql_errno
from mysql_storage_engine.domain.value_objects import TableName
from mysql_storage_engine.infrastructure.metrics import MetricsRegistry
from mysql_storage_engine.ports.inbound import KeyFoundError, KeyNotFoundError


@pytest.fixture
async def store(fake_pool, metrics_registry: MetricsRegistry) -> MySQLResourceStore:
    """Provide a store whose table already exists."""
    s = MySQLResourceStore(fake_pool, TableName("ass"), metrics_registry)
    await s.create_table()
    return s


@pytest.mark.unit
class TestCrud:
    """Test the four primitives."""

    async def test_put_then_get(self, store: MySQLResourceStore) -> None:
        """Test that a stored value reads back deep-equal."""
        value = {"x": 1, "nested": {"list": [1, "two", None]}}
        await store.put("a", value)

        assert await store.get("a") == value
        assert await store.has("a") is True

    async def test_get_missing(self, store: MySQLResourceStore) -> None:
        """Test that a missing id raises KeyNotFoundError carrying the id."""
        with pytest.raises(KeyNotFoundError) as exc_info:
            await store.get("missing")
        assert exc_info.value.key == "missing"

    async def test_get_all(self, store: MySQLResourceStore) -> None:
        """Test that omitting the id returns every pair."""
        await store.put("k1", 1)
        await store.put("k2", {"v": 2})

        pairs = await store.get()

        assert sorted(pairs) == [("k1", 1), ("k2", {"v": 2})]

    async def test_get_all_empty(self, store: MySQLResourceStore) -> None:
        """Test that an empty table returns no pairs."""
        assert await store.get() == []

    async def test_put_existing_rejected(self, store: MySQLResourceStore, fake_server) -> None:
        """Test that put never overwrites."""
        await store.put("a", {"x": 1})

        with pytest.raises(KeyFoundError) as exc_info:
            await store.put("a", {"x": 2})

        assert exc_info.value.key == "a"
        assert await store.get("a") == {"x": 1}
        assert fake_server.count("insert") == 1

    async def test_put_binds_parameters(self, store: MySQLResourceStore, fake_server) -> None:
        """Test that ids and documents are bound, never interpolated."""
        await store.put("it's", {"q": "'; DROP TABLE ass; --"})

        query, args = fake_server.statements[-1]
        assert query == "INSERT INTO `ass` (id, data) VALUES (%s, %s)"
        assert args == ("it's", '{"q":"\'; DROP TABLE ass; --"}')

    async def test_put_lost_race_maps_to_key_found(
        self, store: MySQLResourceStore, fake_server
    ) -> None:
        """Test that a duplicate-key insert is reported as KeyFoundError."""
        await store.put("a", 1)
        fake_server.hide_from_existence_checks("a")

        with pytest.raises(KeyFoundError):
            await store.put("a", 2)

        assert fake_server.count("insert") == 2
        assert await store.get("a") == 1

    async def test_concurrent_puts_same_id(self, store: MySQLResourceStore) -> None:
        """Test that exactly one of two concurrent puts for one id wins."""
        results = await asyncio.gather(
            store.put("a", "first"),
            store.put("a", "second"),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], KeyFoundError)
        assert await store.get("a") in ("first", "second")

    async def test_delete(self, store: MySQLResourceStore) -> None:
        """Test that delete removes the entry."""
        await store.put("a", 1)
        await store.delete("a")

        assert await store.has("a") is False
        with pytest.raises(KeyNotFoundError):
            await store.get("a")

    async def test_delete_missing(self, store: MySQLResourceStore) -> None:
        """Test that deleting an absent id raises KeyNotFoundError."""
        with pytest.raises(KeyNotFoundError) as exc_info:
            await store.delete("a")
        assert exc_info.value.key == "a"

    async def test_has_missing(self, store: MySQLResourceStore) -> None:
        """Test that has returns False rather than raising."""
        assert await store.has("nope") is False

    async def test_count(self, store: MySQLResourceStore) -> None:
        """Test the row count."""
        assert await store.count() == 0
        await store.put("a", 1)
        await store.put("b", 2)
        assert await store.count() == 2


@pytest.mark.unit
class TestInfrastructureErrors:
    """Test that driver failures propagate unchanged."""

    async def test_connection_error_on_has(self, store: MySQLResourceStore, fake_server) -> None:
        """Test that has propagates driver errors."""
        error = OperationalError(2003, "Can't connect to MySQL server")
        fake_server.fail_on("has", error)

        with pytest.raises(OperationalError) as exc_info:
            await store.has("a")
        assert exc_info.value is error

    async def test_missing_table_is_not_a_domain_error(self, fake_pool) -> None:
        """Test that a missing table surfaces as a driver error."""
        s = MySQLResourceStore(fake_pool, TableName("absent"))

        with pytest.raises(ProgrammingError) as exc_info:
            await s.get("a")

        assert not isinstance(exc_info.value, KeyNotFoundError)
        assert mysql_errno(exc_info.value) == 1146

    async def test_insert_failure_propagates(self, store: MySQLResourceStore, fake_server) -> None:
        """Test that non-duplicate insert errors are not translated."""
        fake_server.fail_on("insert", OperationalError(1205, "Lock wait timeout exceeded"))

        with pytest.raises(OperationalError):
            await store.put("a", 1)

    async def test_unserializable_value(self, store: MySQLResourceStore, fake_server) -> None:
        """Test that a non-JSON value fails before reaching the database."""
        with pytest.raises(TypeError):
            await store.put("a", object())
        assert fake_server.count("insert") == 0

    async def test_nan_rejected_before_query(self, store: MySQLResourceStore, fake_server) -> None:
        """Test that a NaN value fails as a bad value, not a driver error."""
        before = len(fake_server.statements)
        with pytest.raises(ValueError):
            await store.put("a", {"v": float("nan")})
        assert len(fake_server.statements) == before

    async def test_empty_id_rejected(self, store: MySQLResourceStore, fake_server) -> None:
        """Test that an empty id never reaches the database."""
        before = len(fake_server.statements)
        with pytest.raises(ValueError):
            await store.put("", 1)
        assert len(fake_server.statements) == before


@pytest.mark.unit
class TestSchema:
    """Test table lookup, creation and removal."""

    async def test_table_exists(self, fake_pool, fake_server) -> None:
        """Test the catalog lookup."""
        s = MySQLResourceStore(fake_pool, TableName("ass"))
        assert await s.table_exists() is False

        assert await s.create_table() is True
        assert await s.table_exists() is True
        assert "ass" in fake_server.tables

    async def test_lookup_escapes_wildcards(self, fake_pool, fake_server) -> None:
        """Test that underscores in the name are matched literally."""
        s = MySQLResourceStore(fake_pool, TableName("my_table"))
        await s.table_exists()

        _, args = fake_server.statements[-1]
        assert args == ("my\\_table",)

    async def test_create_race_reports_false(self, fake_pool, fake_server) -> None:
        """Test that a concurrent CREATE is reported, not raised."""
        fake_server.tables["ass"] = {}
        s = MySQLResourceStore(fake_pool, TableName("ass"))

        assert await s.create_table() is False

    async def test_create_other_errors_propagate(self, fake_pool, fake_server) -> None:
        """Test that other CREATE failures propagate."""
        fake_server.fail_on("create", OperationalError(1044, "Access denied"))
        s = MySQLResourceStore(fake_pool, TableName("ass"))

        with pytest.raises(OperationalError):
            await s.create_table()

    async def test_drop(self, store: MySQLResourceStore, fake_server) -> None:
        """Test that drop removes the table."""
        await store.drop_table()
        assert "ass" not in fake_server.tables


@pytest.mark.unit
class TestMetrics:
    """Test per-operation metrics."""

    async def test_outcomes_counted(
        self, store: MySQLResourceStore, metrics_registry: MetricsRegistry
    ) -> None:
        """Test that success and domain failures are labelled."""
        await store.put("a", 1)
        with pytest.raises(KeyFoundError):
            await store.put("a", 1)
        with pytest.raises(KeyNotFoundError):
            await store.get("b")

        counter = metrics_registry.operations_total
        assert counter.labels(operation="put", status="success")._value.get() == 1
        assert counter.labels(operation="put", status="found")._value.get() == 1
        assert counter.labels(operation="get", status="not_found")._value.get() == 1


@pytest.mark.unit
def test_mysql_errno() -> None:
    """Test error code extraction."""
    assert mysql_errno(OperationalError(1050, "exists")) == 1050
    assert mysql_errno(ValueError("x")) is None
