from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

RiskLevel = Literal["LOW", "MEDIUM", "HIGH"]
RISK_LEVELS: tuple[RiskLevel, ...] = ("LOW", "MEDIUM", "HIGH")

InvestmentEventType = Literal["CREATED", "STATUS_CHANGED", "DELETED"]
BackgroundTaskType = Literal["RISK_ASSESSMENT", "CLIENT_NOTIFICATION"]
BackgroundTaskStatus = Literal["SUCCEEDED", "FAILED"]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InvestmentProposalRecord(BaseModel):
    """Persisted proposal aggregate.

    Field ranges are enforced on the request model at the API boundary; the
    record only guards identity, the risk-level variants and the immutable
    creation timestamp.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = Field(
        default=None,
        frozen=True,
        description="Store-assigned identifier. Empty until the proposal is first saved.",
        examples=[1],
    )
    proposal_reference: str = Field(
        description="Unique business reference of the proposal.", examples=["INV-001"]
    )
    client_name: str = Field(description="Client submitting the proposal.", examples=["John Doe"])
    investment_amount: Decimal = Field(
        description="Requested investment amount.", examples=["50000.00"]
    )
    expected_return: Decimal = Field(
        description="Expected return in percent.", examples=["7.5"]
    )
    risk_level: RiskLevel = Field(description="Risk classification.", examples=["MEDIUM"])
    investment_type: str = Field(description="Investment type.", examples=["STOCKS"])
    assigned_advisor: str = Field(
        description="Advisor owning the proposal.", examples=["Alice Johnson"]
    )
    created_at: datetime = Field(
        default_factory=_utc_now,
        frozen=True,
        description="Construction timestamp. Never changes after construction.",
        examples=["2026-02-19T12:00:00+00:00"],
    )
    approved: bool = Field(default=False, description="Approval flag.", examples=[False])

    def with_id(self, proposal_id: int) -> "InvestmentProposalRecord":
        return self.model_copy(update={"id": proposal_id})


class InvestmentProposalCreateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "proposal_reference": "INV-001",
                "client_name": "John Doe",
                "investment_amount": "50000.00",
                "expected_return": "7.5",
                "risk_level": "MEDIUM",
                "investment_type": "STOCKS",
                "assigned_advisor": "Alice Johnson",
            }
        }
    }

    proposal_reference: str = Field(
        min_length=3,
        max_length=20,
        description="Unique proposal reference (3-20 characters).",
        examples=["INV-001"],
    )
    client_name: str = Field(
        min_length=2,
        max_length=100,
        description="Client name (2-100 characters).",
        examples=["John Doe"],
    )
    investment_amount: Decimal = Field(
        ge=Decimal("1000.00"),
        le=Decimal("10000000.00"),
        description="Investment amount between 1,000.00 and 10,000,000.00.",
        examples=["50000.00"],
    )
    expected_return: Decimal = Field(
        ge=Decimal("0.0"),
        le=Decimal("100.0"),
        description="Expected return percentage between 0.0 and 100.0.",
        examples=["7.5"],
    )
    risk_level: RiskLevel = Field(
        description="Risk classification: LOW, MEDIUM or HIGH.", examples=["MEDIUM"]
    )
    investment_type: str = Field(description="Investment type.", examples=["STOCKS"])
    assigned_advisor: str = Field(
        description="Advisor assigned to the proposal.", examples=["Alice Johnson"]
    )

    @field_validator("proposal_reference", "client_name", "investment_type", "assigned_advisor")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def to_record(self) -> InvestmentProposalRecord:
        return InvestmentProposalRecord(**self.model_dump())


class InvestmentProposalResponse(BaseModel):
    id: int = Field(description="Proposal identifier.", examples=[1])
    proposal_reference: str = Field(description="Proposal reference.", examples=["INV-001"])
    client_name: str = Field(description="Client name.", examples=["John Doe"])
    investment_amount: Decimal = Field(description="Investment amount.", examples=["50000.00"])
    expected_return: Decimal = Field(description="Expected return in percent.", examples=["7.5"])
    risk_level: RiskLevel = Field(description="Risk classification.", examples=["MEDIUM"])
    investment_type: str = Field(description="Investment type.", examples=["STOCKS"])
    assigned_advisor: str = Field(description="Assigned advisor.", examples=["Alice Johnson"])
    created_at: str = Field(
        description="UTC ISO8601 creation timestamp.",
        examples=["2026-02-19T12:00:00+00:00"],
    )
    approved: bool = Field(description="Approval flag.", examples=[False])

    @classmethod
    def from_record(cls, record: InvestmentProposalRecord) -> "InvestmentProposalResponse":
        return cls(
            id=record.id,
            proposal_reference=record.proposal_reference,
            client_name=record.client_name,
            investment_amount=record.investment_amount,
            expected_return=record.expected_return,
            risk_level=record.risk_level,
            investment_type=record.investment_type,
            assigned_advisor=record.assigned_advisor,
            created_at=record.created_at.isoformat(),
            approved=record.approved,
        )


class InvestmentProposalPage(BaseModel):
    items: List[InvestmentProposalResponse] = Field(
        default_factory=list,
        description="Proposals in the requested window.",
        examples=[[{"id": 1, "proposal_reference": "INV-001", "approved": False}]],
    )
    page: int = Field(description="Zero-based page number.", examples=[0])
    size: int = Field(description="Requested page size.", examples=[10])
    total_elements: int = Field(description="Total proposals in the store.", examples=[42])
    total_pages: int = Field(description="Number of pages for the given size.", examples=[5])


class PortfolioSummaryResponse(BaseModel):
    counts: Dict[RiskLevel, int] = Field(
        description="Number of proposals per risk level.",
        examples=[{"LOW": 5, "MEDIUM": 10, "HIGH": 3}],
    )
    total: int = Field(description="Sum of all risk-level counts.", examples=[18])


class PortfolioReviewReport(BaseModel):
    reviewed_at: str = Field(
        description="UTC ISO8601 timestamp of the review run.",
        examples=["2026-02-23T09:00:00+00:00"],
    )
    counts: Dict[RiskLevel, int] = Field(
        description="Number of proposals per risk level at review time.",
        examples=[{"LOW": 5, "MEDIUM": 10, "HIGH": 3}],
    )
    total: int = Field(description="Total proposals reviewed.", examples=[18])


class BackgroundTaskOutcome(BaseModel):
    task_type: BackgroundTaskType = Field(
        description="Background task kind.", examples=["RISK_ASSESSMENT"]
    )
    status: BackgroundTaskStatus = Field(description="Terminal status.", examples=["SUCCEEDED"])
    proposal_id: Optional[int] = Field(
        default=None, description="Proposal the task ran for.", examples=[1]
    )
    message: str = Field(
        description="Human-readable completion message.",
        examples=["Risk assessment completed successfully for proposal: INV-001"],
    )
    finished_at: str = Field(
        description="UTC ISO8601 completion timestamp.",
        examples=["2026-02-19T12:00:05+00:00"],
    )


class InvestmentProposalEvent(BaseModel):
    event_type: InvestmentEventType = Field(description="Lifecycle event.", examples=["CREATED"])
    proposal: InvestmentProposalRecord = Field(description="Affected proposal snapshot.")
    occurred_at: datetime = Field(
        default_factory=_utc_now,
        description="Event timestamp.",
        examples=["2026-02-19T12:00:00+00:00"],
    )
