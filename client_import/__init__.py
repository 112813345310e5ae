"""Client roster import: CSV/XLSX decoding and normalization of client rows."""

__version__ = "0.1.0"
