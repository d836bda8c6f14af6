"""Application Abstractions - domain event forwarding"""
from abc import ABC, abstractmethod
from typing import Sequence

from domain.events import DomainEvent


class DomainEventPublisher(ABC):
    """Receives events drained from aggregates after a successful save.

    Delivery is best effort; callers do not retry.
    """

    @abstractmethod
    async def publish(self, events: Sequence[DomainEvent]) -> None:
        pass
