from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InvestmentManagementSettings(BaseModel):
    """Immutable configuration handed to the lifecycle service at construction."""

    model_config = ConfigDict(frozen=True)

    max_investment_amount: Decimal = Field(
        ge=Decimal("10000.00"),
        description="System-wide ceiling for a single proposal amount, checked at creation.",
        examples=["10000000.00"],
    )
    default_advisor_strategy: str = Field(
        description="Name of the default advisor-assignment strategy.",
        examples=["ROUND_ROBIN"],
    )
    risk_assessment_service_url: Optional[str] = Field(
        default=None,
        description="Optional external risk-assessment endpoint called by background tasks.",
        examples=["https://risk.example.internal/assessments"],
    )
    risk_assessment_delay_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="Simulated processing time of the local risk assessment.",
        examples=[5.0],
    )
    client_notification_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Simulated processing time of a client notification.",
        examples=[2.0],
    )
    background_max_workers: int = Field(
        default=4,
        ge=1,
        description="Worker threads available to background tasks.",
        examples=[4],
    )

    @field_validator("default_advisor_strategy")
    @classmethod
    def _strategy_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("default_advisor_strategy must not be blank")
        return value.strip()

    @field_validator("risk_assessment_service_url")
    @classmethod
    def _blank_url_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()
