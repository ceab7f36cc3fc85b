"""Readers that turn external files into relation-store rows."""

from __future__ import annotations

from revalor.ingestion.csv_values import IndexValueCSVParser

__all__ = ["IndexValueCSVParser"]
