[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "solarimport"
version = "0.1.0"
description = "Template-driven CSV/XLSX import engine for solar monitoring monthly reports"
requires-python = ">=3.11"
dependencies = [
    "python-dotenv",
]
keywords = [
    "solar",
    "import",
    "csv",
    "xlsx",
    "unpivot",
    "etl",
    "monthly-report",
    "kwh",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Topic :: Office/Business",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
solarimport = "solarimport.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["solarimport"]

[tool.hatch.build.targets.sdist]
include = [
    "solarimport",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
