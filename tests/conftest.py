"""
Shared fixtures: fixed clock, review factory and an isolated event log.
"""
from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from karmatic.logging.event_logger import EventLogger
from karmatic.schemas import Review

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_review():
    """
    Factory for reviews.

    days_ago places the review relative to NOW; date overrides it with a raw string.
    """
    ids = count(1)

    def _make(rating=5, text="", days_ago=None, date=None, responded=False):
        if date is None:
            date = (NOW - timedelta(days=days_ago)).isoformat() if days_ago is not None else ""
        return Review(
            id=f"r-{next(ids)}",
            author="Cliente",
            rating=rating,
            text=text,
            date=date,
            response={"text": "Gracias por su comentario", "date": date} if responded else None
        )

    return _make


@pytest.fixture
def event_logger(tmp_path, monkeypatch):
    """Redirect every module-level event logger to a temp file"""
    isolated = EventLogger(log_path=tmp_path / "events.jsonl")
    monkeypatch.setattr("karmatic.pipeline.logger", isolated)
    monkeypatch.setattr("karmatic.api.logger", isolated)
    return isolated
