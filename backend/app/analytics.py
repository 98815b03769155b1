from __future__ import annotations

import asyncio
import logging
from typing import get_args

from sqlalchemy import func, select

from .contracts import AnalyticsEvent, EventType
from .db.core import get_session
from .db.models import AnalyticsRecord
from .metrics import analytics_events_total

logger = logging.getLogger(__name__)


def _plural(event_type: str) -> str:
    return f"{event_type}es" if event_type.endswith(("ch", "sh", "s")) else f"{event_type}s"


class AnalyticsRecorder:
    """
    Best-effort event log. ``emit`` never blocks and never raises: the insert runs as a
    background task and failures are only logged.
    """

    def __init__(self) -> None:
        self._pending: set[asyncio.Task[bool]] = set()

    def emit(self, event: AnalyticsEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "Dropping analytics event %s/%s: no running event loop",
                event.entity_type,
                event.event_type,
            )
            analytics_events_total.labels(result="dropped").inc()
            return
        task = loop.create_task(self.record(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def record(self, event: AnalyticsEvent) -> bool:
        try:
            async with get_session() as session:
                session.add(
                    AnalyticsRecord(
                        entity_type=event.entity_type,
                        entity_id=event.entity_id,
                        event_type=event.event_type,
                        user_id=event.user_id,
                        event_metadata=event.metadata,
                        occurred_at=event.timestamp,
                    )
                )
                await session.commit()
        except Exception:
            logger.exception(
                "Failed to record analytics event %s %s/%s",
                event.event_type,
                event.entity_type,
                event.entity_id,
            )
            analytics_events_total.labels(result="failed").inc()
            return False
        analytics_events_total.labels(result="recorded").inc()
        return True

    async def drain(self) -> None:
        """Wait for events emitted on the current loop to finish recording."""
        loop = asyncio.get_running_loop()
        pending = [task for task in self._pending if task.get_loop() is loop]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def summary(self, entity_type: str, entity_id: str) -> dict[str, int]:
        counts = {_plural(event_type): 0 for event_type in get_args(EventType)}
        async with get_session() as session:
            stmt = (
                select(AnalyticsRecord.event_type, func.count(AnalyticsRecord.id))
                .where(AnalyticsRecord.entity_type == entity_type)
                .where(AnalyticsRecord.entity_id == str(entity_id))
                .group_by(AnalyticsRecord.event_type)
            )
            for event_type, count in (await session.execute(stmt)).all():
                counts[_plural(str(event_type))] = int(count or 0)
        counts["total"] = sum(counts.values())
        return counts


__all__ = ["AnalyticsRecorder"]
