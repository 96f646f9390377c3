import logging
import math
from decimal import Decimal

from src.core.investments.background import BackgroundTaskRunner
from src.core.investments.cache import SingleEntryCache, evicts_listing_cache
from src.core.investments.events import InvestmentEventPublisher
from src.core.investments.models import (
    InvestmentProposalPage,
    InvestmentProposalRecord,
    InvestmentProposalResponse,
    RiskLevel,
)
from src.core.investments.repository import InvestmentProposalRepository
from src.core.investments.settings import InvestmentManagementSettings

LISTING_CACHE_KEY = "investmentProposals"

logger = logging.getLogger(__name__)


class InvestmentProposalError(Exception):
    pass


class InvestmentProposalNotFoundError(InvestmentProposalError):
    def __init__(self, proposal_id: int) -> None:
        super().__init__(f"Investment proposal not found with ID: {proposal_id}")
        self.proposal_id = proposal_id


class InvestmentLimitExceededError(InvestmentProposalError):
    def __init__(self, limit: Decimal) -> None:
        super().__init__(f"Investment amount exceeds maximum allowed limit of {limit}")
        self.limit = limit


class DuplicateProposalReferenceError(InvestmentProposalError):
    def __init__(self, proposal_reference: str) -> None:
        super().__init__(f"Investment proposal reference already exists: {proposal_reference}")
        self.proposal_reference = proposal_reference


class InvestmentProposalService:
    def __init__(
        self,
        *,
        repository: InvestmentProposalRepository,
        settings: InvestmentManagementSettings,
        publisher: InvestmentEventPublisher,
        task_runner: BackgroundTaskRunner,
    ) -> None:
        self._repository = repository
        self._settings = settings
        self._publisher = publisher
        self._task_runner = task_runner
        self._listing_cache: SingleEntryCache[list[InvestmentProposalRecord]] = (
            SingleEntryCache(LISTING_CACHE_KEY)
        )

    @property
    def settings(self) -> InvestmentManagementSettings:
        return self._settings

    @evicts_listing_cache
    def create_proposal(self, proposal: InvestmentProposalRecord) -> InvestmentProposalRecord:
        if proposal.investment_amount > self._settings.max_investment_amount:
            raise InvestmentLimitExceededError(self._settings.max_investment_amount)

        saved = self._repository.save(proposal)
        logger.info(
            "Investment proposal created. Reference=%s ID=%s",
            saved.proposal_reference,
            saved.id,
        )
        self._publisher.publish(event_type="CREATED", proposal=saved)
        self._task_runner.assess_risk(saved)
        return saved

    def get_proposal(self, *, proposal_id: int) -> InvestmentProposalRecord:
        proposal = self._repository.find_by_id(proposal_id=proposal_id)
        if proposal is None:
            raise InvestmentProposalNotFoundError(proposal_id)
        return proposal

    @evicts_listing_cache
    def update_approval_status(
        self, *, proposal_id: int, approved: bool
    ) -> InvestmentProposalRecord:
        proposal = self.get_proposal(proposal_id=proposal_id)
        proposal.approved = approved
        updated = self._repository.save(proposal)
        self._publisher.publish(event_type="STATUS_CHANGED", proposal=updated)
        self._task_runner.notify_client(updated)
        return updated

    @evicts_listing_cache
    def delete_proposal(self, *, proposal_id: int) -> None:
        proposal = self.get_proposal(proposal_id=proposal_id)
        self._repository.delete(proposal)
        logger.info(
            "Investment proposal deleted. Reference=%s ID=%s",
            proposal.proposal_reference,
            proposal_id,
        )
        self._publisher.publish(event_type="DELETED", proposal=proposal)

    def list_proposals(self) -> list[InvestmentProposalRecord]:
        cached = self._listing_cache.get_or_load(self._repository.find_all)
        return [proposal.model_copy() for proposal in cached]

    def list_by_client(self, *, client_name: str) -> list[InvestmentProposalRecord]:
        return self._repository.find_by_client_name_containing_ignore_case(
            client_name=client_name
        )

    def list_high_value(self, *, threshold: Decimal) -> list[InvestmentProposalRecord]:
        return self._repository.find_high_value_descending(threshold=threshold)

    def list_paginated(self, *, page: int, size: int) -> InvestmentProposalPage:
        if page < 0:
            raise ValueError("page must be zero or greater")
        if size < 1:
            raise ValueError("size must be at least one")
        rows, total = self._repository.find_page(page=page, size=size)
        return InvestmentProposalPage(
            items=[InvestmentProposalResponse.from_record(row) for row in rows],
            page=page,
            size=size,
            total_elements=total,
            total_pages=math.ceil(total / size) if total else 0,
        )

    def list_by_risk_level(self, *, risk_level: RiskLevel) -> list[InvestmentProposalRecord]:
        return self._repository.find_by_risk_level(risk_level=risk_level)

    def list_by_approval(self, *, approved: bool) -> list[InvestmentProposalRecord]:
        return self._repository.find_by_approved(approved=approved)

    def list_by_type_and_min_amount(
        self, *, investment_type: str, min_amount: Decimal
    ) -> list[InvestmentProposalRecord]:
        return self._repository.find_by_type_and_min_amount(
            investment_type=investment_type, min_amount=min_amount
        )

    def list_by_advisor(self, *, advisor: str) -> list[InvestmentProposalRecord]:
        return self._repository.find_by_advisor(advisor=advisor)
