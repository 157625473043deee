from decimal import Decimal

import pytest

from solarimport.errors import DbError, InvalidTable
from solarimport.mssql import SqlServerDao, build_insert_sql, parse_ado_string
from solarimport.rows import DailyKwhRow


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = -1
        self._row = None

    def execute(self, sql, params=()):
        self.conn.executed.append((sql, list(params)))
        if sql.startswith("SELECT"):
            self._row = (self.conn.table_count,)
        elif sql.startswith("INSERT"):
            self.rowcount = len(params) // 4

    def fetchone(self):
        return self._row


class FakeConn:
    def __init__(self, table_count):
        self.table_count = table_count
        self.executed = []
        self.committed = False
        self.closed = False
        self.settings = None

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def close(self):
        self.closed = True


def factory(conn):
    def connect(settings):
        conn.settings = settings
        return conn

    return connect


def rows(n):
    return [DailyKwhRow(f"A{i}", "PlantA", "20260401", Decimal("1.5")) for i in range(n)]


def test_parse_ado_string_keys_and_quotes():
    parsed = parse_ado_string("Server=tcp:localhost,1433; User ID=user;Database={a;b}")
    assert parsed == {"server": "tcp:localhost,1433", "user id": "user", "database": "a;b"}


def test_parse_ado_string_empty():
    assert parse_ado_string("") == {}


@pytest.mark.parametrize("bad", ["server", "server=tcp:localhost,abc", "db={open"])
def test_parse_ado_string_rejects(bad):
    with pytest.raises(ValueError):
        parse_ado_string(bad)


def test_build_insert_sql_placeholders():
    sql = build_insert_sql("dev_kwh_test", 3)
    assert sql.startswith(
        "INSERT INTO [dev_kwh_test] (caseid, plant_name, shift_hour, daily_kwh) VALUES "
    )
    assert sql.count("?") == 3 * 4
    assert sql.count("(?,?,?,?)") == 3


def test_build_insert_sql_rejects_bad_table():
    with pytest.raises(InvalidTable):
        build_insert_sql("a;b", 1)


def test_constructor_validates():
    with pytest.raises(InvalidTable):
        SqlServerDao("server=localhost", "bad name")
    with pytest.raises(ValueError, match="parsing connection string"):
        SqlServerDao("server", "t")


@pytest.mark.asyncio
async def test_inserts_into_existing_table():
    conn = FakeConn(table_count=1)
    dao = SqlServerDao("server=localhost", "dev_kwh_test", factory(conn))
    data = rows(2)
    assert await dao.upsert_month("202604", data) == 2
    assert conn.settings == {"server": "localhost"}
    assert not any(sql.startswith("CREATE") for sql, _ in conn.executed)
    insert_sql, params = conn.executed[-1]
    assert insert_sql == build_insert_sql("dev_kwh_test", 2)
    assert params[:4] == ["A0", "PlantA", "20260401", Decimal("1.5")]
    assert conn.committed and conn.closed


@pytest.mark.asyncio
async def test_creates_missing_table():
    conn = FakeConn(table_count=0)
    dao = SqlServerDao("server=localhost", "dev_kwh_test", factory(conn))
    await dao.upsert_month("202604", rows(1))
    creates = [sql for sql, _ in conn.executed if sql.startswith("CREATE TABLE")]
    assert len(creates) == 1
    assert creates[0].startswith("CREATE TABLE [dev_kwh_test]")


@pytest.mark.asyncio
async def test_chunks_large_batches():
    conn = FakeConn(table_count=1)
    dao = SqlServerDao("server=localhost", "t", factory(conn))
    assert await dao.upsert_month("202604", rows(1001)) == 1001
    inserts = [p for sql, p in conn.executed if sql.startswith("INSERT")]
    assert len(inserts) == 3
    assert sum(len(p) for p in inserts) == 1001 * 4


@pytest.mark.asyncio
async def test_without_connect_factory_raises():
    dao = SqlServerDao("server=localhost", "t")
    with pytest.raises(DbError):
        await dao.upsert_month("202604", rows(1))


@pytest.mark.asyncio
async def test_driver_error_wrapped_and_connection_closed():
    conn = FakeConn(table_count=1)

    def failing_cursor():
        raise RuntimeError("boom")

    conn.cursor = failing_cursor
    dao = SqlServerDao("server=localhost", "t", factory(conn))
    with pytest.raises(DbError, match="boom"):
        await dao.upsert_month("202604", rows(1))
    assert conn.closed is True