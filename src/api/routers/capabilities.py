from typing import Annotated, Callable, Optional

from fastapi import Header, HTTPException, status

from src.api.routers.investment_proposals_config import env_flag

VIEWER = "INVESTMENT_VIEWER"
CREATOR = "INVESTMENT_CREATOR"
APPROVER = "INVESTMENT_APPROVER"
ADMIN_DELETE = "INVESTMENT_ADMIN"
ANALYST = "INVESTMENT_ANALYST"
SUPERUSER = "ADMIN"


def parse_capabilities(header_value: Optional[str]) -> set[str]:
    if not header_value:
        return set()
    return {item.strip().upper() for item in header_value.split(",") if item.strip()}


def require_capability(capability: str) -> Callable[..., None]:
    """Build a dependency that checks the caller's ``X-Capabilities`` header.

    Identity is resolved upstream; this only compares the forwarded capability
    names, and only when ``INVESTMENT_CAPABILITY_ENFORCEMENT_ENABLED`` is set.
    """

    def _dependency(
        capabilities: Annotated[
            Optional[str],
            Header(
                alias="X-Capabilities",
                description="Comma-separated capabilities granted by the identity layer.",
                examples=["INVESTMENT_VIEWER,INVESTMENT_CREATOR"],
            ),
        ] = None,
    ) -> None:
        if not env_flag("INVESTMENT_CAPABILITY_ENFORCEMENT_ENABLED", False):
            return
        granted = parse_capabilities(capabilities)
        if capability in granted or SUPERUSER in granted:
            return
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"CAPABILITY_REQUIRED: {capability}",
        )

    return _dependency
