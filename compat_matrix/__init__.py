"""Compatibility-matrix workbook ingestion.

Reads human-authored compatibility workbooks, normalizes them into relational
records and atomically replaces the destination tables in PostgreSQL.
"""

__version__ = "0.3.0"
