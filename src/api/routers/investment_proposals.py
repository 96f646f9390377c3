from decimal import Decimal
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from src.api.routers.capabilities import (
    ADMIN_DELETE,
    ANALYST,
    APPROVER,
    CREATOR,
    VIEWER,
    require_capability,
)
from src.api.routers.investment_http_errors import raise_investment_http_exception
from src.api.routers.investment_proposals_config import (
    build_repository,
    load_investment_settings,
)
from src.core.investments import (
    BackgroundTaskRunner,
    InvestmentEventPublisher,
    InvestmentProposalCreateRequest,
    InvestmentProposalError,
    InvestmentProposalPage,
    InvestmentProposalRecord,
    InvestmentProposalRepository,
    InvestmentProposalResponse,
    InvestmentProposalService,
    PortfolioQueryService,
    PortfolioSummaryResponse,
    RiskLevel,
    log_investment_event,
)

router = APIRouter(prefix="/api/investment-proposals", tags=["Investment Proposals"])

_REPOSITORY: Optional[InvestmentProposalRepository] = None
_PUBLISHER: Optional[InvestmentEventPublisher] = None
_TASK_RUNNER: Optional[BackgroundTaskRunner] = None
_SERVICE: Optional[InvestmentProposalService] = None
_PORTFOLIO_SERVICE: Optional[PortfolioQueryService] = None


def get_investment_repository() -> InvestmentProposalRepository:
    global _REPOSITORY
    if _REPOSITORY is None:
        try:
            _REPOSITORY = build_repository()
        except RuntimeError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
            ) from exc
    return _REPOSITORY


def get_investment_event_publisher() -> InvestmentEventPublisher:
    global _PUBLISHER
    if _PUBLISHER is None:
        _PUBLISHER = InvestmentEventPublisher()
        _PUBLISHER.subscribe(log_investment_event)
    return _PUBLISHER


def get_investment_proposal_service() -> InvestmentProposalService:
    global _SERVICE
    global _TASK_RUNNER
    if _SERVICE is None:
        try:
            settings = load_investment_settings()
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="INVESTMENT_SETTINGS_INVALID",
            ) from exc
        repository = get_investment_repository()
        _TASK_RUNNER = BackgroundTaskRunner(
            risk_assessment_delay_seconds=settings.risk_assessment_delay_seconds,
            client_notification_delay_seconds=settings.client_notification_delay_seconds,
            max_workers=settings.background_max_workers,
            risk_assessment_service_url=settings.risk_assessment_service_url,
        )
        _SERVICE = InvestmentProposalService(
            repository=repository,
            settings=settings,
            publisher=get_investment_event_publisher(),
            task_runner=_TASK_RUNNER,
        )
    return _SERVICE


def get_portfolio_query_service() -> PortfolioQueryService:
    global _PORTFOLIO_SERVICE
    if _PORTFOLIO_SERVICE is None:
        _PORTFOLIO_SERVICE = PortfolioQueryService(repository=get_investment_repository())
    return _PORTFOLIO_SERVICE


def shutdown_investment_services(*, wait: bool = True) -> None:
    if _TASK_RUNNER is not None:
        _TASK_RUNNER.shutdown(wait=wait)


def reset_investment_services_for_tests() -> None:
    global _REPOSITORY
    global _PUBLISHER
    global _TASK_RUNNER
    global _SERVICE
    global _PORTFOLIO_SERVICE
    shutdown_investment_services(wait=False)
    _REPOSITORY = None
    _PUBLISHER = None
    _TASK_RUNNER = None
    _SERVICE = None
    _PORTFOLIO_SERVICE = None


ServiceDependency = Annotated[
    InvestmentProposalService, Depends(get_investment_proposal_service)
]
ProposalIdPath = Annotated[
    int, Path(description="Store-assigned proposal identifier.", examples=[1])
]


def _responses(records: list[InvestmentProposalRecord]) -> list[InvestmentProposalResponse]:
    return [InvestmentProposalResponse.from_record(record) for record in records]


@router.get(
    "",
    response_model=list[InvestmentProposalResponse],
    summary="List Investment Proposals",
    description="Returns every stored proposal. Served from the listing cache until a mutation.",
    dependencies=[Depends(require_capability(VIEWER))],
)
def list_investment_proposals(service: ServiceDependency) -> list[InvestmentProposalResponse]:
    return _responses(service.list_proposals())


@router.post(
    "",
    response_model=InvestmentProposalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Investment Proposal",
    description=(
        "Validates and persists a proposal, publishes a creation event and schedules "
        "an asynchronous risk assessment."
    ),
    dependencies=[Depends(require_capability(CREATOR))],
)
def create_investment_proposal(
    payload: InvestmentProposalCreateRequest,
    service: ServiceDependency,
) -> InvestmentProposalResponse:
    try:
        created = service.create_proposal(payload.to_record())
    except InvestmentProposalError as exc:
        raise_investment_http_exception(exc)
    return InvestmentProposalResponse.from_record(created)


@router.get(
    "/client/{client_name}",
    response_model=list[InvestmentProposalResponse],
    summary="List Proposals By Client",
    description="Case-insensitive substring match on client name.",
    dependencies=[Depends(require_capability(VIEWER))],
)
def list_proposals_by_client(
    client_name: Annotated[
        str, Path(description="Client name fragment.", examples=["john"])
    ],
    service: ServiceDependency,
) -> list[InvestmentProposalResponse]:
    return _responses(service.list_by_client(client_name=client_name))


@router.get(
    "/portfolio/summary",
    response_model=PortfolioSummaryResponse,
    summary="Portfolio Risk Summary",
    description="Counts proposals per risk level.",
    dependencies=[Depends(require_capability(ANALYST))],
)
def get_portfolio_summary(
    portfolio: Annotated[PortfolioQueryService, Depends(get_portfolio_query_service)],
) -> PortfolioSummaryResponse:
    return portfolio.summary()


@router.get(
    "/paginated",
    response_model=InvestmentProposalPage,
    summary="List Proposals Page",
    description="Zero-based page of proposals ordered by identifier.",
    dependencies=[Depends(require_capability(VIEWER))],
)
def list_proposals_paginated(
    service: ServiceDependency,
    page: Annotated[int, Query(ge=0, description="Zero-based page number.", examples=[0])] = 0,
    size: Annotated[int, Query(ge=1, description="Page size.", examples=[10])] = 10,
) -> InvestmentProposalPage:
    return service.list_paginated(page=page, size=size)


@router.get(
    "/high-value",
    response_model=list[InvestmentProposalResponse],
    summary="List High-Value Proposals",
    description="Proposals with amount strictly above the threshold, largest first.",
    dependencies=[Depends(require_capability(ANALYST))],
)
def list_high_value_proposals(
    service: ServiceDependency,
    threshold: Annotated[
        Decimal, Query(description="Exclusive amount threshold.", examples=["100000.00"])
    ] = Decimal("100000.00"),
) -> list[InvestmentProposalResponse]:
    return _responses(service.list_high_value(threshold=threshold))


@router.get(
    "/risk-level/{risk_level}",
    response_model=list[InvestmentProposalResponse],
    summary="List Proposals By Risk Level",
    dependencies=[Depends(require_capability(VIEWER))],
)
def list_proposals_by_risk_level(
    risk_level: Annotated[RiskLevel, Path(description="Risk level.", examples=["HIGH"])],
    service: ServiceDependency,
) -> list[InvestmentProposalResponse]:
    return _responses(service.list_by_risk_level(risk_level=risk_level))


@router.get(
    "/approval/{approved}",
    response_model=list[InvestmentProposalResponse],
    summary="List Proposals By Approval Flag",
    dependencies=[Depends(require_capability(VIEWER))],
)
def list_proposals_by_approval(
    approved: Annotated[bool, Path(description="Approval flag.", examples=[True])],
    service: ServiceDependency,
) -> list[InvestmentProposalResponse]:
    return _responses(service.list_by_approval(approved=approved))


@router.get(
    "/advisor/{advisor}",
    response_model=list[InvestmentProposalResponse],
    summary="List Proposals By Advisor",
    dependencies=[Depends(require_capability(VIEWER))],
)
def list_proposals_by_advisor(
    advisor: Annotated[str, Path(description="Exact advisor name.", examples=["Alice Johnson"])],
    service: ServiceDependency,
) -> list[InvestmentProposalResponse]:
    return _responses(service.list_by_advisor(advisor=advisor))


@router.get(
    "/type/{investment_type}",
    response_model=list[InvestmentProposalResponse],
    summary="List Proposals By Type And Minimum Amount",
    dependencies=[Depends(require_capability(VIEWER))],
)
def list_proposals_by_type(
    investment_type: Annotated[str, Path(description="Investment type.", examples=["STOCKS"])],
    service: ServiceDependency,
    min_amount: Annotated[
        Decimal, Query(description="Inclusive minimum amount.", examples=["10000.00"])
    ] = Decimal("0"),
) -> list[InvestmentProposalResponse]:
    return _responses(
        service.list_by_type_and_min_amount(
            investment_type=investment_type, min_amount=min_amount
        )
    )


@router.get(
    "/{proposal_id}",
    response_model=InvestmentProposalResponse,
    summary="Get Investment Proposal",
    dependencies=[Depends(require_capability(VIEWER))],
)
def get_investment_proposal(
    proposal_id: ProposalIdPath,
    service: ServiceDependency,
) -> InvestmentProposalResponse:
    try:
        proposal = service.get_proposal(proposal_id=proposal_id)
    except InvestmentProposalError as exc:
        raise_investment_http_exception(exc)
    return InvestmentProposalResponse.from_record(proposal)


@router.put(
    "/{proposal_id}/approve",
    response_model=InvestmentProposalResponse,
    summary="Set Proposal Approval",
    description="Sets the approval flag and schedules a client notification.",
    dependencies=[Depends(require_capability(APPROVER))],
)
def update_investment_proposal_approval(
    proposal_id: ProposalIdPath,
    approved: Annotated[bool, Query(description="New approval flag.", examples=[True])],
    service: ServiceDependency,
) -> InvestmentProposalResponse:
    try:
        updated = service.update_approval_status(proposal_id=proposal_id, approved=approved)
    except InvestmentProposalError as exc:
        raise_investment_http_exception(exc)
    return InvestmentProposalResponse.from_record(updated)


@router.delete(
    "/{proposal_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Investment Proposal",
    dependencies=[Depends(require_capability(ADMIN_DELETE))],
)
def delete_investment_proposal(
    proposal_id: ProposalIdPath,
    service: ServiceDependency,
) -> Response:
    try:
        service.delete_proposal(proposal_id=proposal_id)
    except InvestmentProposalError as exc:
        raise_investment_http_exception(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
