"""CSV/XLSX decoding and sheet materialization."""
