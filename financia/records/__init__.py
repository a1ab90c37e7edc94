"""Record store package for Financ.ia."""

from financia.records.store import RecordStore

__all__ = ["RecordStore"]
