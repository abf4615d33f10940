"""Exception hierarchy for event ingestion."""

from __future__ import annotations


class IngestError(Exception):
    """Base exception for all ingestion errors."""


class MalformedEventError(IngestError):
    """Raw event is missing a recognized kind or a numeric value."""


class OverloadedError(IngestError):
    """Inbound queue is saturated; the event was dropped."""
