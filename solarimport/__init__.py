"""Profile-driven import of monthly solar-monitoring CSV/XLSX reports into daily rows."""

__version__ = "0.1.0"