from src.core.investments.background import BackgroundTaskRunner
from src.core.investments.events import InvestmentEventPublisher, log_investment_event
from src.core.investments.models import (
    RISK_LEVELS,
    BackgroundTaskOutcome,
    InvestmentProposalCreateRequest,
    InvestmentProposalEvent,
    InvestmentProposalPage,
    InvestmentProposalRecord,
    InvestmentProposalResponse,
    PortfolioReviewReport,
    PortfolioSummaryResponse,
    RiskLevel,
)
from src.core.investments.portfolio import PortfolioQueryService
from src.core.investments.repository import InvestmentProposalRepository
from src.core.investments.service import (
    DuplicateProposalReferenceError,
    InvestmentLimitExceededError,
    InvestmentProposalError,
    InvestmentProposalNotFoundError,
    InvestmentProposalService,
)
from src.core.investments.settings import InvestmentManagementSettings

__all__ = [
    "BackgroundTaskOutcome",
    "BackgroundTaskRunner",
    "DuplicateProposalReferenceError",
    "InvestmentEventPublisher",
    "InvestmentLimitExceededError",
    "InvestmentManagementSettings",
    "InvestmentProposalCreateRequest",
    "InvestmentProposalError",
    "InvestmentProposalEvent",
    "InvestmentProposalNotFoundError",
    "InvestmentProposalPage",
    "InvestmentProposalRecord",
    "InvestmentProposalRepository",
    "InvestmentProposalResponse",
    "InvestmentProposalService",
    "PortfolioQueryService",
    "PortfolioReviewReport",
    "PortfolioSummaryResponse",
    "RISK_LEVELS",
    "RiskLevel",
    "log_investment_event",
]
