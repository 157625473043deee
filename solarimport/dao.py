"""Database access interface, the dry-run implementation and the factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from .config import DatabaseCfg
from .errors import GateClosed, InvalidTable, TargetNotImplemented
from .rows import DailyKwhRow


class Dao(ABC):
    """Writes a month's rows to a database."""

    @abstractmethod
    async def upsert_month(self, year_month: str, rows: Sequence[DailyKwhRow]) -> int:
        """Ensure the target table exists and insert ``rows``; return the count written."""


class NoopDao(Dao):
    """Never touches a database; used for dry runs."""

    async def upsert_month(self, year_month: str, rows: Sequence[DailyKwhRow]) -> int:
        return 0


def make_dao(cfg: DatabaseCfg) -> Dao:
    """Build the DAO for ``cfg.target``, provided that target is enabled."""
    if not cfg.is_enabled(cfg.target):
        raise GateClosed(cfg.target)
    if cfg.target == "mssql":
        from .mssql import SqlServerDao

        return SqlServerDao(cfg.conn, cfg.table)
    raise TargetNotImplemented(cfg.target)


def validate_table_name(name: str) -> None:
    """Allow only 1-128 characters from [A-Za-z0-9_]; raise InvalidTable otherwise."""
    if not 1 <= len(name.encode("utf-8")) <= 128:
        raise InvalidTable(name)
    if not all(ch == "_" or (ch.isascii() and ch.isalnum()) for ch in name):
        raise InvalidTable(name)