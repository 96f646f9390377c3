import logging
from threading import Lock
from typing import Callable

from src.core.investments.models import (
    InvestmentEventType,
    InvestmentProposalEvent,
    InvestmentProposalRecord,
)

logger = logging.getLogger(__name__)

InvestmentEventObserver = Callable[[InvestmentProposalEvent], None]


class InvestmentEventPublisher:
    """Synchronous fan-out of lifecycle events.

    Observers run in registration order on the publishing thread. An observer
    that raises is logged and skipped, so later observers still receive the
    event and the publishing operation is unaffected.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._observers: list[InvestmentEventObserver] = []

    def subscribe(self, observer: InvestmentEventObserver) -> None:
        with self._lock:
            self._observers.append(observer)

    def unsubscribe(self, observer: InvestmentEventObserver) -> None:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def publish(
        self, *, event_type: InvestmentEventType, proposal: InvestmentProposalRecord
    ) -> InvestmentProposalEvent:
        event = InvestmentProposalEvent(event_type=event_type, proposal=proposal.model_copy())
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(event)
            except Exception:
                logger.exception(
                    "Investment event observer failed. EventType=%s Reference=%s",
                    event.event_type,
                    event.proposal.proposal_reference,
                )
        return event


def log_investment_event(event: InvestmentProposalEvent) -> None:
    proposal = event.proposal
    logger.info(
        "investment_proposal.%s",
        event.event_type.lower(),
        extra={
            "extra_fields": {
                "proposal_id": proposal.id,
                "proposal_reference": proposal.proposal_reference,
                "client_name": proposal.client_name,
                "approved": proposal.approved,
            }
        },
    )
