from typing import NoReturn

from fastapi import HTTPException, status

from src.core.investments import (
    DuplicateProposalReferenceError,
    InvestmentLimitExceededError,
    InvestmentProposalNotFoundError,
)

HTTP_422_UNPROCESSABLE = getattr(
    status,
    "HTTP_422_UNPROCESSABLE_CONTENT",
    status.HTTP_422_UNPROCESSABLE_ENTITY,
)


def raise_investment_http_exception(exc: Exception) -> NoReturn:
    if isinstance(exc, InvestmentProposalNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, DuplicateProposalReferenceError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, InvestmentLimitExceededError):
        raise HTTPException(status_code=HTTP_422_UNPROCESSABLE, detail=str(exc)) from exc
    raise exc
