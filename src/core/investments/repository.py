from decimal import Decimal
from typing import Optional, Protocol

from src.core.investments.models import InvestmentProposalRecord, RiskLevel


class InvestmentProposalRepository(Protocol):
    def save(self, proposal: InvestmentProposalRecord) -> InvestmentProposalRecord: ...

    def find_by_id(self, *, proposal_id: int) -> Optional[InvestmentProposalRecord]: ...

    def find_all(self) -> list[InvestmentProposalRecord]: ...

    def find_page(self, *, page: int, size: int) -> tuple[list[InvestmentProposalRecord], int]: ...

    def find_by_client_name_containing_ignore_case(
        self, *, client_name: str
    ) -> list[InvestmentProposalRecord]: ...

    def find_by_risk_level(self, *, risk_level: RiskLevel) -> list[InvestmentProposalRecord]: ...

    def find_by_approved(self, *, approved: bool) -> list[InvestmentProposalRecord]: ...

    def find_by_type_and_min_amount(
        self, *, investment_type: str, min_amount: Decimal
    ) -> list[InvestmentProposalRecord]: ...

    def find_high_value_descending(
        self, *, threshold: Decimal
    ) -> list[InvestmentProposalRecord]: ...

    def find_by_advisor(self, *, advisor: str) -> list[InvestmentProposalRecord]: ...

    def count_by_risk_level(self, *, risk_level: RiskLevel) -> int: ...

    def delete(self, proposal: InvestmentProposalRecord) -> None: ...
