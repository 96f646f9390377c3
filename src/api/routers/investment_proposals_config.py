import os
import warnings
from decimal import Decimal, InvalidOperation
from typing import cast

from src.core.investments import InvestmentManagementSettings, InvestmentProposalRepository
from src.infrastructure.investments import (
    InMemoryInvestmentProposalRepository,
    PostgresInvestmentProposalRepository,
)

DEFAULT_MAX_INVESTMENT_AMOUNT = "10000000.00"
DEFAULT_ADVISOR_STRATEGY = "ROUND_ROBIN"


def env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def investment_store_backend_name() -> str:
    backend = os.getenv("INVESTMENT_STORE_BACKEND", "IN_MEMORY").strip().upper()
    if backend == "POSTGRES":
        return "POSTGRES"
    if backend != "IN_MEMORY":
        warnings.warn(
            f"INVESTMENT_STORE_BACKEND={backend!r} is not recognised; falling back to IN_MEMORY.",
            RuntimeWarning,
            stacklevel=2,
        )
    return "IN_MEMORY"


def investment_postgres_dsn() -> str:
    return os.getenv("INVESTMENT_POSTGRES_DSN", "").strip()


def _postgres_connection_exception_types() -> tuple[type[BaseException], ...]:
    types: list[type[BaseException]] = [
        ConnectionError,
        OSError,
        TimeoutError,
        TypeError,
        ValueError,
    ]
    try:
        import psycopg
    except ImportError:
        pass
    else:
        types.append(psycopg.Error)
    return tuple(types)


def build_repository() -> InvestmentProposalRepository:
    if investment_store_backend_name() == "POSTGRES":
        dsn = investment_postgres_dsn()
        if not dsn:
            raise RuntimeError("INVESTMENT_POSTGRES_DSN_REQUIRED")
        try:
            return cast(
                InvestmentProposalRepository, PostgresInvestmentProposalRepository(dsn=dsn)
            )
        except RuntimeError:
            raise
        except _postgres_connection_exception_types() as exc:
            raise RuntimeError("INVESTMENT_POSTGRES_CONNECTION_FAILED") from exc
    return cast(InvestmentProposalRepository, InMemoryInvestmentProposalRepository())


def _env_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default).strip()
    try:
        return Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a decimal value") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def load_investment_settings() -> InvestmentManagementSettings:
    """Read settings from ``INVESTMENT_*`` environment variables.

    Raises ``ValueError`` (pydantic ``ValidationError`` included) when a value is
    malformed or violates a settings constraint.
    """
    return InvestmentManagementSettings(
        max_investment_amount=_env_decimal(
            "INVESTMENT_MAX_AMOUNT", DEFAULT_MAX_INVESTMENT_AMOUNT
        ),
        default_advisor_strategy=os.getenv(
            "INVESTMENT_DEFAULT_ADVISOR_STRATEGY", DEFAULT_ADVISOR_STRATEGY
        ),
        risk_assessment_service_url=os.getenv("INVESTMENT_RISK_ASSESSMENT_SERVICE_URL"),
        risk_assessment_delay_seconds=_env_float(
            "INVESTMENT_RISK_ASSESSMENT_DELAY_SECONDS", 5.0
        ),
        client_notification_delay_seconds=_env_float(
            "INVESTMENT_CLIENT_NOTIFICATION_DELAY_SECONDS", 2.0
        ),
        background_max_workers=_env_int("INVESTMENT_BACKGROUND_MAX_WORKERS", 4),
    )
