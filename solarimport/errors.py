"""Exception hierarchy for reshaping, database access and profile routing."""

from __future__ import annotations


def _quoted(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class ReshapeError(Exception):
    """Base class for failures while turning a grid into rows."""


class AnchorMissing(ReshapeError):
    """The anchor header cell was not found."""

    def __init__(self, anchor: str, strategy: str) -> None:
        self.anchor = anchor
        self.strategy = strategy
        super().__init__(f"anchor '{anchor}' not found via {_quoted(strategy)}")


class InvalidDate(ReshapeError):
    """A (year, month, day) triple is not a real calendar date."""

    def __init__(self, y: int, m: int, d: int, col: int) -> None:
        self.y = y
        self.m = m
        self.d = d
        self.col = col
        super().__init__(f"invalid calendar date {y:04d}-{m:02d}-{d:02d} at col {col}")


class OutOfRange(ReshapeError):
    """A value lies outside the configured [min, max] range."""

    def __init__(
        self,
        row: int,
        col: int,
        value: str,
        min: float | None,
        max: float | None,
    ) -> None:
        self.row = row
        self.col = col
        self.value = value
        self.min = min
        self.max = max
        super().__init__(
            f"value at row {row} col {col} out of range: '{value}' not in [{min},{max}]"
        )


class CastError(ReshapeError):
    """A raw cell could not be converted to the requested kind."""

    def __init__(self, row: int, col: int, value: str, kind: str) -> None:
        self.row = row
        self.col = col
        self.value = value
        self.kind = kind
        super().__init__(f"cast failed at row {row} col {col}: '{value}' -> {_quoted(kind)}")


class BadProfile(ReshapeError):
    """The profile is malformed."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"malformed profile: {detail}")


class BadYearMonth(ReshapeError):
    """A year_month string is not YYYYMM."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"malformed year_month '{value}' (expected YYYYMM)")


class DaoError(Exception):
    """Base class for database access failures."""


class GateClosed(DaoError):
    """The configured target is not enabled."""

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(
            f"dao gate closed for target '{target}' (check [database.enabled] in config)"
        )


class TargetNotImplemented(DaoError):
    """No DAO exists for the configured target."""

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"dao target '{target}' is not implemented")


class InvalidTable(DaoError):
    """A table name failed the whitelist check."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"invalid table name '{name}': only [A-Za-z0-9_] allowed (1-128 chars)"
        )


class DbError(DaoError):
    """A database driver error."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"db error: {detail}")


class ProfileError(Exception):
    """Base class for profile loading and routing failures."""


class NoMatch(ProfileError):
    """No profile matched the file."""

    def __init__(self, file: str) -> None:
        self.file = file
        super().__init__(f"no profile matched (filename={file})")


class AmbiguousMatch(ProfileError):
    """Several profiles matched with equal priority."""

    def __init__(self, file: str, names: list[str]) -> None:
        self.file = file
        self.names = list(names)
        rendered = "[" + ", ".join(_quoted(n) for n in self.names) + "]"
        super().__init__(
            f"multiple profiles matched (file={file}, names={rendered}); "
            "set priority to disambiguate"
        )


class SignatureDrift(ProfileError):
    """The header signature differs from the one the profile expects."""

    def __init__(self, profile: str, expected: str, actual: str) -> None:
        self.profile = profile
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"header signature drift on '{profile}': expected {expected}, got {actual}"
        )


class ProfileIoError(ProfileError):
    """A profile file or directory could not be read."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"io error reading profile '{path}': {detail}")


class ProfileJsonError(ProfileError):
    """A profile file is not valid profile JSON."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"json error in profile '{path}': {detail}")