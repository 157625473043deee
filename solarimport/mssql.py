"""SQL Server DAO working over any DB-API connection factory."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any

from .dao import Dao, validate_table_name
from .errors import DaoError, DbError
from .rows import DailyKwhRow

log = logging.getLogger(__name__)

INSERT_CHUNK = 500
_SERVER_KEYS = ("server", "data source", "address", "addr", "network address")

Connect = Callable[[dict[str, str]], Any]


def parse_ado_string(conn_str: str) -> dict[str, str]:
    """Parse an ADO.NET style ``key=value;...`` string into lower-cased keys.

    Values may be wrapped in braces or quotes. Raises ValueError when malformed.
    """
    result: dict[str, str] = {}
    text = conn_str
    i, n = 0, len(text)
    while i < n:
        end = i
        while end < n and text[end] not in "=;":
            end += 1
        key = text[i:end].strip()
        if end >= n or text[end] == ";":
            if key:
                raise ValueError(f"connection string segment '{key}' has no '='")
            i = end + 1
            continue
        if not key:
            raise ValueError("connection string has an empty key")
        i = end + 1
        while i < n and text[i] in " \t":
            i += 1
        if i < n and text[i] in "{\"'":
            close = "}" if text[i] == "{" else text[i]
            i += 1
            chars: list[str] = []
            while True:
                if i >= n:
                    raise ValueError(f"unterminated value for '{key}'")
                if text[i] == close:
                    if i + 1 < n and text[i + 1] == close:
                        chars.append(close)
                        i += 2
                        continue
                    i += 1
                    break
                chars.append(text[i])
                i += 1
            value = "".join(chars)
            while i < n and text[i] in " \t":
                i += 1
            if i < n and text[i] != ";":
                raise ValueError(f"unexpected text after quoted value for '{key}'")
        else:
            end = text.find(";", i)
            end = n if end < 0 else end
            value = text[i:end].strip()
            i = end
        result[key.lower()] = value
        i += 1
    for server_key in _SERVER_KEYS:
        if server_key in result:
            _check_server(result[server_key])
    return result


def _check_server(server: str) -> None:
    address = server[4:] if server.lower().startswith("tcp:") else server
    _, sep, port = address.partition(",")
    if sep:
        port = port.strip()
        if not port.isdigit() or int(port) > 65535:
            raise ValueError(f"invalid port in server '{server}'")


def build_insert_sql(table: str, count: int) -> str:
    """A multi-row INSERT for ``count`` rows with four ``?`` parameters each."""
    validate_table_name(table)
    if count < 1:
        raise ValueError("row count must be at least 1")
    values = ",".join(["(?,?,?,?)"] * count)
    return f"INSERT INTO [{table}] (caseid, plant_name, shift_hour, daily_kwh) VALUES {values}"


def _create_table_sql(table: str) -> str:
    return (
        f"CREATE TABLE [{table}] (\n"
        "    caseid     NVARCHAR(64)  NOT NULL,\n"
        "    plant_name NVARCHAR(256) NULL,\n"
        "    shift_hour CHAR(8)       NOT NULL,\n"
        "    daily_kwh  DECIMAL(18,4) NULL\n"
        ")"
    )


class SqlServerDao(Dao):
    """Creates the target table when absent and inserts rows in chunks.

    ``connect`` receives the parsed connection settings and returns a DB-API
    connection using the ``qmark`` parameter style.
    """

    def __init__(self, conn_str: str, table: str, connect: Connect | None = None) -> None:
        validate_table_name(table)
        try:
            self._params = parse_ado_string(conn_str)
        except ValueError as exc:
            raise ValueError(f"parsing connection string: {exc}") from exc
        self.table = table
        self._connect = connect

    async def upsert_month(self, year_month: str, rows: Sequence[DailyKwhRow]) -> int:
        if self._connect is None:
            raise DbError("no SQL Server connection factory configured")
        total = await asyncio.to_thread(self._write, list(rows))
        log.info("insert done table=%s year_month=%s rows=%d", self.table, year_month, total)
        return total

    def _write(self, rows: list[DailyKwhRow]) -> int:
        try:
            conn = self._connect(dict(self._params))
        except DaoError:
            raise
        except Exception as exc:
            raise DbError(str(exc)) from exc
        try:
            cursor = conn.cursor()
            self._ensure_table(cursor)
            total = 0
            for start in range(0, len(rows), INSERT_CHUNK):
                total += self._insert_chunk(cursor, rows[start:start + INSERT_CHUNK])
            conn.commit()
            return total
        except DaoError:
            raise
        except Exception as exc:
            raise DbError(str(exc)) from exc
        finally:
            conn.close()

    def _ensure_table(self, cursor) -> None:
        cursor.execute(
            "SELECT CAST(COUNT(*) AS INT) FROM sys.tables WHERE name = ?", (self.table,)
        )
        row = cursor.fetchone()
        count = row[0] if row and row[0] is not None else 0
        if count > 0:
            return
        cursor.execute(_create_table_sql(self.table))
        log.info("created dev table %s", self.table)

    def _insert_chunk(self, cursor, chunk: list[DailyKwhRow]) -> int:
        if not chunk:
            return 0
        params = [
            value
            for r in chunk
            for value in (r.caseid, r.plant_name, r.shift_hour, r.daily_kwh)
        ]
        cursor.execute(build_insert_sql(self.table, len(chunk)), params)
        affected = getattr(cursor, "rowcount", -1)
        return affected if affected is not None and affected >= 0 else len(chunk)