# solarimport

Import monthly solar-monitoring reports (CSV or XLSX) driven by JSON profiles
that describe each report's layout.

A report is a wide sheet: one row per plant, and one column per day of the
month (`1日`, `2日`, … `31日`). `solarimport` picks the profile that matches
each file, locates the day columns, checks every value against the profile's
rules, and produces one `DailyKwhRow` per plant per day:

| caseid | plant_name | shift_hour | daily_kwh |
|--------|------------|------------|-----------|
| A001   | PlantA     | 20260401   | 10.5      |
| A001   | PlantA     | 20260402   | 20.5      |

Days that do not exist in the month (April 31st, February 29th outside leap
years) are dropped when the profile sets `validate_calendar_day`.

## Installation

```
pip install .
```

Python 3.11 or newer is required. The only runtime dependency is
`python-dotenv`; XLSX/XLSM workbooks are read with the standard library.

## Configuration

The command reads `config.toml` from the current directory unless `--config`
points elsewhere (the option is accepted before or after the subcommand):

```toml
[source]
input_dir  = "data/input"
backup_dir = "data/bak"
error_dir  = "data/error"

[database]
target = "mssql"
conn   = "Server=tcp:localhost,1433;Database=solar;User Id=user;Password=<REPLACED_BY_ENV>"
table  = "dev_kwh"

[database.enabled]
mssql = true

[log]
dir   = "logs"
level = "info"

[profile]
dir = "profiles"
```

All four tables and their keys are required, except `[database.enabled]`.

- Any setting can be overridden with an environment variable prefixed `SMI_`,
  using `__` between nested keys, for example `SMI_DATABASE__TABLE=dev_kwh_test`
  or `SMI_DATABASE__ENABLED__MSSQL=true`.
- A `.env` file, searched for from the working directory upward, is loaded
  first.
- If the connection string contains `<REPLACED_BY_ENV>`, it is replaced with
  the value of `SMI_DB_PASSWORD`.
- Database writes are gated: the `target` must be switched on under
  `[database.enabled]`, otherwise `run` stops with an error before any file is
  touched. `mssql` is the only target; any other raises `TargetNotImplemented`.
- Table names may only contain `A-Z`, `a-z`, `0-9` and `_` (1–128 characters).

## Processing reports

```
solarimport run
solarimport run --input-dir incoming --profile-dir profiles
solarimport run --dry-run
```

Every `.csv`, `.xlsx` and `.xlsm` file directly inside the input directory (not
in subdirectories) is processed in name order:

- a file that imports cleanly is moved to `backup_dir`, with today's date
  appended to its stem (`202604_report.csv` becomes `202604_report_20260505.csv`);
- a file that matches no profile, or fails in any other way, is moved to
  `error_dir` together with a `<stem>.<ext>.err.txt` file holding the error
  and its chain of causes.

`--dry-run` reads, routes and reshapes every file and logs a preview of the
first five rows, but never calls the database and moves no files.

The command exits with status 1 if any file failed, or if the configuration
could not be loaded; files that matched no profile are counted as rejected,
not failed. `solarimport --version` prints the version.

Logs go to stderr and to `import.log` in the log directory, rotated at
midnight. The level comes from the `IMPORT_LOG` environment variable if it
names a valid level, otherwise from `[log].level` (`trace`, `debug`, `info`,
`warn`, `error`, `off`).

## Profiles

A profile is a `*.json` file in the profile directory:

```json
{
  "name": "solar_monthly",
  "match": {
    "filename": "*發電量*.xlsx",
    "header_contains": ["1日", "31日"],
    "header_signature": "356bdc2a0ec6",
    "priority": 10
  },
  "encoding": "big5",
  "format": "xlsx",
  "sheet": 1,
  "header_rows": 1,
  "data_start_row": 3,
  "skip_blank_id": true,
  "fill_merged": false,
  "id_cols": [
    { "name": "caseid", "col": 1, "type": "string" },
    { "name": "plant_name", "col": 2, "type": "string" }
  ],
  "unpivot": {
    "anchor": "1日",
    "anchor_match": "exact",
    "day_cols": 31,
    "validate_calendar_day": true,
    "var_name": "shift_hour",
    "value_name": "daily_kwh",
    "year_month_from": "filename:0..6"
  },
  "value_rules": {
    "type": "decimal",
    "decimals": 4,
    "missingValues": ["", "-", "#DIV/0!", "#N/A", "#VALUE!"],
    "zero_is_valid": true,
    "min": 0,
    "max": 1000000
  }
}
```

Routing (`Registry.route`):

- `filename` is a glob supporting `*` and `?` only;
- every string in `header_contains` must appear in the file's first row;
- when several profiles match, the highest `priority` wins; a tie raises
  `AmbiguousMatch`, and no match raises `NoMatch`;
- `header_signature` is the first 12 hex digits of the SHA-1 of the trimmed
  header cells joined with `|`. A mismatch is logged as drift, but the file is
  still imported.

Reshaping:

- `header_rows` rows are combined into one header; with two or more, the
  non-empty parts of each column are joined with `/`, and `fill_merged`
  forward-fills empty cells in each header row first;
- `anchor_match` is `exact` (trimmed equality) or `contains`;
- the first id column is the case id, the second (optional) is the plant name;
  with `skip_blank_id`, rows with an empty case id are skipped;
- values are parsed as decimals after removing `,`; entries in
  `missingValues` (or `missing_values`) and blank cells become empty values;
  numbers outside `min`/`max`, and zero when `zero_is_valid` is false, are
  errors that fail the file.

`year_month_from` is either `filename:<start>..<end>` (a character range of the
file name, which must give six digits `YYYYMM`) or `constant:YYYYMM`.
`encoding` applies to CSV files and accepts `utf-8`, `utf8`, `big5`, `bom` or
`auto`; a byte-order mark in the file always takes precedence. Row and column
numbers in a profile are 1-based, as in a spreadsheet; `sheet` selects the
worksheet of a workbook (default: the first).

## Drafting a profile

```
solarimport learn --structure template.xlsx --sample 202604_report.xlsx --out profiles/solar.json --name solar_monthly
```

`learn` finds the first row containing a day header such as `1日`, the `1日`
anchor column, the run of day columns after it and the first data row, and
computes the header signature. If the sample file exists (and differs from
the structure file), its day values give the number of decimals, the range and
any extra missing-value tokens; otherwise default value rules are written.
The filename glob (`*.csv` / `*.xlsx`), encoding (`utf-8` for CSV, `big5`
otherwise), id columns and `year_month_from` are best guesses, so review the
draft before using it. Without `--name`, the structure file's stem is used.

## Using it as a library

```python
import asyncio

from solarimport import app, config, dao, profile

cfg = config.load("config.toml")
registry = profile.load_dir(cfg.profile.dir)
summary = asyncio.run(app.run(cfg, registry, dao.NoopDao(), None, True))
print(summary.processed, summary.rows_total)
```

`solarimport.reshape.apply(grid, profile, "202604")` turns an already-read grid
(a list of rows of strings) into `DailyKwhRow` records without touching the
file system. Any subclass of `solarimport.dao.Dao` implementing the async
`upsert_month(year_month, rows)` can be passed to `app.run`.

## What it does not do

- No SQL Server driver is included. `solarimport.mssql.SqlServerDao` needs a
  `connect` callable that receives the parsed connection settings and returns
  a DB-API connection using `?` parameters. The `run` command builds it
  without one, so a run that is not `--dry-run` fails every matched file with
  a `DbError` and moves it to the error directory. To write to a database,
  call `app.run` from your own code with a `SqlServerDao` given a `connect`
  callable, or with your own `Dao`.
- `SqlServerDao.upsert_month` creates the table if it is missing and inserts
  rows in chunks of 500; it does not replace rows already stored for the
  month, so importing a file twice stores its rows twice.

## Running the tests

```
pip install .[test]
pytest
```