"""Column mapping, value parsers and row normalization."""
