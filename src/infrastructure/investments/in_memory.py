from copy import deepcopy
from decimal import Decimal
from threading import Lock
from typing import Optional

from src.core.investments.models import InvestmentProposalRecord, RiskLevel
from src.core.investments.repository import InvestmentProposalRepository
from src.core.investments.service import (
    DuplicateProposalReferenceError,
    InvestmentProposalNotFoundError,
)


class InMemoryInvestmentProposalRepository(InvestmentProposalRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._proposals: dict[int, InvestmentProposalRecord] = {}
        self._next_id = 1

    def save(self, proposal: InvestmentProposalRecord) -> InvestmentProposalRecord:
        with self._lock:
            for existing in self._proposals.values():
                if (
                    existing.proposal_reference == proposal.proposal_reference
                    and existing.id != proposal.id
                ):
                    raise DuplicateProposalReferenceError(proposal.proposal_reference)
            if proposal.id is None:
                proposal = proposal.with_id(self._next_id)
                self._next_id += 1
            elif proposal.id not in self._proposals:
                raise InvestmentProposalNotFoundError(proposal.id)
            self._proposals[proposal.id] = deepcopy(proposal)
            return deepcopy(proposal)

    def find_by_id(self, *, proposal_id: int) -> Optional[InvestmentProposalRecord]:
        with self._lock:
            proposal = self._proposals.get(proposal_id)
            return deepcopy(proposal) if proposal is not None else None

    def find_all(self) -> list[InvestmentProposalRecord]:
        return self._select(lambda row: True)

    def find_page(self, *, page: int, size: int) -> tuple[list[InvestmentProposalRecord], int]:
        rows = self.find_all()
        start = page * size
        return rows[start : start + size], len(rows)

    def find_by_client_name_containing_ignore_case(
        self, *, client_name: str
    ) -> list[InvestmentProposalRecord]:
        needle = client_name.lower()
        return self._select(lambda row: needle in row.client_name.lower())

    def find_by_risk_level(self, *, risk_level: RiskLevel) -> list[InvestmentProposalRecord]:
        return self._select(lambda row: row.risk_level == risk_level)

    def find_by_approved(self, *, approved: bool) -> list[InvestmentProposalRecord]:
        return self._select(lambda row: row.approved == approved)

    def find_by_type_and_min_amount(
        self, *, investment_type: str, min_amount: Decimal
    ) -> list[InvestmentProposalRecord]:
        return self._select(
            lambda row: row.investment_type == investment_type
            and row.investment_amount >= min_amount
        )

    def find_high_value_descending(
        self, *, threshold: Decimal
    ) -> list[InvestmentProposalRecord]:
        rows = self._select(lambda row: row.investment_amount > threshold)
        return sorted(rows, key=lambda row: row.investment_amount, reverse=True)

    def find_by_advisor(self, *, advisor: str) -> list[InvestmentProposalRecord]:
        return self._select(lambda row: row.assigned_advisor == advisor)

    def count_by_risk_level(self, *, risk_level: RiskLevel) -> int:
        with self._lock:
            return sum(1 for row in self._proposals.values() if row.risk_level == risk_level)

    def delete(self, proposal: InvestmentProposalRecord) -> None:
        with self._lock:
            self._proposals.pop(proposal.id, None)

    def _select(self, predicate) -> list[InvestmentProposalRecord]:
        with self._lock:
            rows = [row for row in self._proposals.values() if predicate(row)]
        rows = sorted(rows, key=lambda row: row.id)
        return [deepcopy(row) for row in rows]
