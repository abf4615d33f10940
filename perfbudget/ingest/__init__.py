"""Event ingestion — validation, timestamp normalization, bounded queue."""

from perfbudget.ingest.exceptions import IngestError, MalformedEventError, OverloadedError
from perfbudget.ingest.ingestor import EventIngestor, IngestStats, IngestSummary
from perfbudget.ingest.queue import IngestQueue, QueueStats

__all__ = [
    "EventIngestor",
    "IngestError",
    "IngestQueue",
    "IngestStats",
    "IngestSummary",
    "MalformedEventError",
    "OverloadedError",
    "QueueStats",
]
