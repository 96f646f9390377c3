import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from threading import Event
from typing import Callable, Optional

import httpx

from src.core.investments.models import (
    BackgroundTaskOutcome,
    BackgroundTaskType,
    InvestmentProposalRecord,
)

logger = logging.getLogger(__name__)


class BackgroundTaskCancelledError(Exception):
    pass


class BackgroundTaskRunner:
    """Runs non-critical proposal side effects on a worker pool.

    Every submitted task resolves to a :class:`BackgroundTaskOutcome`; failures
    and cancellations are reported through the outcome and never raised into
    the future. Tasks are not retried.
    """

    def __init__(
        self,
        *,
        risk_assessment_delay_seconds: float = 5.0,
        client_notification_delay_seconds: float = 2.0,
        max_workers: int = 4,
        risk_assessment_service_url: Optional[str] = None,
        http_client_factory: Optional[Callable[[], httpx.Client]] = None,
    ) -> None:
        self._risk_assessment_delay_seconds = risk_assessment_delay_seconds
        self._client_notification_delay_seconds = client_notification_delay_seconds
        self._risk_assessment_service_url = risk_assessment_service_url
        self._http_client_factory = http_client_factory or (
            lambda: httpx.Client(timeout=httpx.Timeout(10.0))
        )
        self._cancelled = Event()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="investment-background"
        )

    def assess_risk(self, proposal: InvestmentProposalRecord) -> Future:
        reference = proposal.proposal_reference
        return self._submit(
            task_type="RISK_ASSESSMENT",
            proposal=proposal,
            work=self._run_risk_assessment,
            success_message=f"Risk assessment completed successfully for proposal: {reference}",
            failure_prefix=f"Risk assessment failed for proposal: {reference}",
        )

    def notify_client(self, proposal: InvestmentProposalRecord) -> Future:
        client_name = proposal.client_name
        return self._submit(
            task_type="CLIENT_NOTIFICATION",
            proposal=proposal,
            work=self._run_client_notification,
            success_message=f"Notification sent successfully to client: {client_name}",
            failure_prefix=f"Notification failed for client: {client_name}",
        )

    def shutdown(self, *, wait: bool = True) -> None:
        self._cancelled.set()
        self._executor.shutdown(wait=wait)

    @property
    def is_shut_down(self) -> bool:
        return self._cancelled.is_set()

    def _submit(
        self,
        *,
        task_type: BackgroundTaskType,
        proposal: InvestmentProposalRecord,
        work: Callable[[InvestmentProposalRecord], Optional[str]],
        success_message: str,
        failure_prefix: str,
    ) -> Future:
        snapshot = proposal.model_copy()

        def _task() -> BackgroundTaskOutcome:
            try:
                detail = work(snapshot)
            except Exception as exc:
                logger.warning("%s - %s", failure_prefix, exc)
                return _outcome(
                    task_type=task_type,
                    proposal=snapshot,
                    status="FAILED",
                    message=f"{failure_prefix} - {exc}",
                )
            message = f"{success_message} ({detail})" if detail else success_message
            logger.info(message)
            return _outcome(
                task_type=task_type, proposal=snapshot, status="SUCCEEDED", message=message
            )

        if not self._cancelled.is_set():
            try:
                return self._executor.submit(_task)
            except RuntimeError:
                # executor shut down between the check and the submit
                pass
        future: Future = Future()
        future.set_result(
            _outcome(
                task_type=task_type,
                proposal=snapshot,
                status="FAILED",
                message=f"{failure_prefix} - runner is shut down",
            )
        )
        return future

    def _wait_or_cancel(self, delay_seconds: float) -> None:
        if self._cancelled.wait(timeout=delay_seconds):
            raise BackgroundTaskCancelledError("cancelled during shutdown")

    def _run_risk_assessment(self, proposal: InvestmentProposalRecord) -> Optional[str]:
        if self._risk_assessment_service_url is None:
            self._wait_or_cancel(self._risk_assessment_delay_seconds)
            return None
        if self._cancelled.is_set():
            raise BackgroundTaskCancelledError("cancelled during shutdown")
        with self._http_client_factory() as client:
            response = client.post(
                self._risk_assessment_service_url,
                json=proposal.model_dump(mode="json"),
            )
            response.raise_for_status()
        return f"risk service status {response.status_code}"

    def _run_client_notification(self, proposal: InvestmentProposalRecord) -> Optional[str]:
        self._wait_or_cancel(self._client_notification_delay_seconds)
        return None


def _outcome(
    *,
    task_type: BackgroundTaskType,
    proposal: InvestmentProposalRecord,
    status: str,
    message: str,
) -> BackgroundTaskOutcome:
    return BackgroundTaskOutcome(
        task_type=task_type,
        status=status,
        proposal_id=proposal.id,
        message=message,
        finished_at=datetime.now(timezone.utc).isoformat(),
    )
