from decimal import Decimal
from typing import Optional

from src.core.investments import (
    BackgroundTaskRunner,
    InvestmentEventPublisher,
    InvestmentManagementSettings,
    InvestmentProposalRecord,
    InvestmentProposalService,
)
from src.infrastructure.investments import InMemoryInvestmentProposalRepository


def proposal(
    reference: str = "INV-001",
    client_name: str = "John Doe",
    amount: str = "50000.00",
    expected_return: str = "7.5",
    risk_level: str = "MEDIUM",
    investment_type: str = "STOCKS",
    advisor: str = "Alice Johnson",
    approved: bool = False,
) -> InvestmentProposalRecord:
    return InvestmentProposalRecord(
        proposal_reference=reference,
        client_name=client_name,
        investment_amount=Decimal(amount),
        expected_return=Decimal(expected_return),
        risk_level=risk_level,
        investment_type=investment_type,
        assigned_advisor=advisor,
        approved=approved,
    )


def create_payload(**overrides) -> dict:
    payload = {
        "proposal_reference": "INV-001",
        "client_name": "John Doe",
        "investment_amount": "50000.00",
        "expected_return": "7.5",
        "risk_level": "MEDIUM",
        "investment_type": "STOCKS",
        "assigned_advisor": "Alice Johnson",
    }
    payload.update(overrides)
    return payload


def settings(max_amount: str = "10000000.00") -> InvestmentManagementSettings:
    return InvestmentManagementSettings(
        max_investment_amount=Decimal(max_amount),
        default_advisor_strategy="ROUND_ROBIN",
        risk_assessment_delay_seconds=0.0,
        client_notification_delay_seconds=0.0,
    )


class RecordingTaskRunner:
    """Stands in for ``BackgroundTaskRunner`` and remembers what was scheduled."""

    def __init__(self) -> None:
        self.risk_assessments: list[InvestmentProposalRecord] = []
        self.notifications: list[InvestmentProposalRecord] = []

    def assess_risk(self, proposal: InvestmentProposalRecord):
        self.risk_assessments.append(proposal)

    def notify_client(self, proposal: InvestmentProposalRecord):
        self.notifications.append(proposal)


def build_service(
    *,
    repository=None,
    publisher: Optional[InvestmentEventPublisher] = None,
    task_runner=None,
    max_amount: str = "10000000.00",
) -> InvestmentProposalService:
    return InvestmentProposalService(
        repository=repository or InMemoryInvestmentProposalRepository(),
        settings=settings(max_amount),
        publisher=publisher or InvestmentEventPublisher(),
        task_runner=task_runner or RecordingTaskRunner(),
    )


def instant_runner(**kwargs) -> BackgroundTaskRunner:
    kwargs.setdefault("risk_assessment_delay_seconds", 0.0)
    kwargs.setdefault("client_notification_delay_seconds", 0.0)
    return BackgroundTaskRunner(**kwargs)
