"""
JSONL event logger with Windows Event Viewer style Event IDs.

Async-safe append-only logging of trust and pipeline events.
"""
import asyncio
from pathlib import Path
from typing import Optional, List

from pydantic import ValidationError

from karmatic.schemas import Event, EventLevel, EventCategory, TrustAnalysis, TrustLevel, RatingPattern
import config


class EventLogger:
    """
    Async JSONL logger for Karmatic events.

    Event ID ranges:
    - 1001 to 1999: Trust events
    - 2001 to 2999: Agency events
    - 4001 to 4999: System events

    All events written to logs/events.jsonl in append-only mode.
    """

    def __init__(self, log_path: Path = config.EVENT_LOG_FILE):
        self.log_path = Path(log_path)
        self.lock = asyncio.Lock()

    async def log_event(self, event: Event) -> None:
        """
        Append event to JSONL log file.

        Serialized with an async lock so concurrent agency tasks don't interleave lines.

        Args:
            event: Event object to log
        """
        async with self.lock:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(event.to_jsonl() + "\n")

    async def log_trust_analysis(
        self,
        place_id: str,
        agency_name: str,
        analysis: TrustAnalysis,
        reviews_count: int
    ):
        """
        Log a completed trust analysis.

        Event ID: 1001 (completed), plus 1002 for low trust and 1003 for a
        suspicious rating pattern
        """
        details = {
            "place_id": place_id,
            "agency": agency_name,
            "trust_score": analysis.trust_score,
            "trust_level": analysis.trust_level.value,
            "reviews_count": reviews_count,
            "red_flags": len(analysis.red_flags),
            "green_flags": len(analysis.green_flags)
        }

        await self.log_event(Event(
            event_id=1001,
            level=EventLevel.INFORMATION,
            category=EventCategory.TRUST,
            message=f"Trust analysis completed for {agency_name}: {analysis.trust_score}/100",
            details=details
        ))

        if analysis.trust_level in (TrustLevel.BAJA, TrustLevel.MUY_BAJA):
            await self.log_event(Event(
                event_id=1002,
                level=EventLevel.WARNING,
                category=EventCategory.TRUST,
                message=f"Low trust agency detected: {agency_name} ({analysis.trust_level.value})",
                details={**details, "flags": list(analysis.red_flags)}
            ))

        if analysis.metrics.rating_pattern == RatingPattern.SOSPECHOSO:
            await self.log_event(Event(
                event_id=1003,
                level=EventLevel.WARNING,
                category=EventCategory.TRUST,
                message=f"Suspicious rating pattern detected for {agency_name}",
                details=details
            ))

    async def log_agency_action(
        self,
        place_id: str,
        agency_name: str,
        action: str,
        reason: str
    ):
        """
        Log an agency that left the pipeline.

        Event IDs:
        - 2001: Excluded for low review activity
        - 2002: Skipped for low Places rating
        - 2003: Analysis failed
        """
        event_id_map = {
            "low_activity": 2001,
            "low_rating": 2002,
            "failed": 2003
        }

        event_id = event_id_map.get(action, 2003)
        level = EventLevel.ERROR if action == "failed" else EventLevel.INFORMATION

        await self.log_event(Event(
            event_id=event_id,
            level=level,
            category=EventCategory.AGENCY,
            message=f"Agency {action}: {agency_name}",
            details={
                "place_id": place_id,
                "agency": agency_name,
                "action": action,
                "reason": reason
            }
        ))

    async def log_system_event(
        self,
        event_id: int,
        message: str,
        details: Optional[dict] = None
    ):
        """
        Log system-level event.

        Event IDs:
        - 4001: Pipeline started
        - 4002: Pipeline completed
        - 4003: Seed data loaded
        """
        event = Event(
            event_id=event_id,
            level=EventLevel.INFORMATION,
            category=EventCategory.SYSTEM,
            message=message,
            details=details or {}
        )
        await self.log_event(event)

    def read_events(self, limit: int = 100, level: Optional[EventLevel] = None) -> List[Event]:
        """
        Read recent events from log.

        Args:
            limit: Maximum number of events to return
            level: Filter by event level (optional)

        Returns:
            List of Event objects (most recent first)
        """
        if not self.log_path.exists():
            return []

        events = []
        with open(self.log_path, "r", encoding="utf-8") as f:
            lines = f.readlines()

        for line in reversed(lines):
            if not line.strip():
                continue
            try:
                event = Event.model_validate_json(line)
            except ValidationError:
                # Skip malformed lines
                continue
            if level is None or event.level == level:
                events.append(event)
                if len(events) >= limit:
                    break

        return events

    def get_event_count(self) -> int:
        """Get total number of events logged"""
        if not self.log_path.exists():
            return 0

        with open(self.log_path, "r", encoding="utf-8") as f:
            return sum(1 for line in f if line.strip())


# Global logger instance
logger = EventLogger()
