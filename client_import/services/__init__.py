"""Orchestration, batch processing, summary and progress services."""
