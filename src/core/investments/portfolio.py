import logging
from datetime import datetime, timezone

from src.core.investments.models import (
    RISK_LEVELS,
    PortfolioReviewReport,
    PortfolioSummaryResponse,
    RiskLevel,
)
from src.core.investments.repository import InvestmentProposalRepository

logger = logging.getLogger(__name__)


class PortfolioQueryService:
    def __init__(self, *, repository: InvestmentProposalRepository) -> None:
        self._repository = repository

    def summary_by_risk_level(self) -> dict[RiskLevel, int]:
        return {
            risk_level: self._repository.count_by_risk_level(risk_level=risk_level)
            for risk_level in RISK_LEVELS
        }

    def summary(self) -> PortfolioSummaryResponse:
        counts = self.summary_by_risk_level()
        return PortfolioSummaryResponse(counts=counts, total=sum(counts.values()))

    def run_portfolio_review(self) -> PortfolioReviewReport:
        reviewed_at = datetime.now(timezone.utc).isoformat()
        logger.info("Portfolio review started. ReviewedAt=%s", reviewed_at)
        try:
            counts = self.summary_by_risk_level()
        except Exception:
            logger.exception("Portfolio review failed. ReviewedAt=%s", reviewed_at)
            raise
        report = PortfolioReviewReport(
            reviewed_at=reviewed_at, counts=counts, total=sum(counts.values())
        )
        logger.info(
            "portfolio_review.completed",
            extra={"extra_fields": {"counts": report.counts, "total": report.total}},
        )
        return report
