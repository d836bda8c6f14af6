"""Infrastructure Event Publisher"""
import logging
from typing import List, Sequence

from application.events import DomainEventPublisher
from domain.events import DomainEvent

logger = logging.getLogger(__name__)


class LoggingDomainEventPublisher(DomainEventPublisher):
    """Logs each event and keeps them, in order, for in-process subscribers"""

    def __init__(self):
        self.published: List[DomainEvent] = []

    async def publish(self, events: Sequence[DomainEvent]) -> None:
        for event in events:
            logger.info(
                "Domain event %s (%s) occurred on %s",
                event.event_type, event.event_id, event.occurred_on.isoformat()
            )
            self.published.append(event)
