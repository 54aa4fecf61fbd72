from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from lms.db.engine import async_session_factory
from lms.models.principal import COMPLIANCE_ROLES, Principal
from lms.repos.registry import Repositories
from lms.services import token_service
from lms.services.cache import CacheService, cache_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/dev/token")


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Extract and validate the JWT bearer token. Returns a Principal.

    Used as a FastAPI dependency on any protected endpoint.
    """
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    principal = Principal(
        user_id=claims["sub"],
        roles=frozenset(claims.get("roles") or []),
        name=claims.get("name") or "",
        department=claims.get("department"),
    )
    logger.debug(
        "Token validated for user=%s roles=%s",
        principal.user_id,
        principal.roles,
    )
    return principal


def require_any_role(roles: set[str] | frozenset[str]):
    """Dependency factory: demand at least one of the given roles.

    Usage: Depends(require_any_role({"compliance", "admin"}))
    """

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.has_any_role(roles):
            logger.warning(
                "Access denied: user=%s has none of roles=%s",
                principal.user_id,
                sorted(roles),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


require_compliance = require_any_role(COMPLIANCE_ROLES)


async def get_repos(request: Request) -> AsyncIterator[Repositories]:
    """Request-scoped repositories.

    With a database, one session spans the request: committed when the
    handler succeeds, rolled back when it raises.  Without one, the
    in-memory repositories built at startup are shared.
    """
    if async_session_factory is None:
        yield request.app.state.repos
        return

    async with async_session_factory() as session:
        try:
            yield Repositories.postgres(session)
        except Exception:
            await session.rollback()
            raise
        await session.commit()


def get_cache() -> CacheService:
    return cache_service


CurrentUser = Annotated[Principal, Depends(require_user)]
ComplianceUser = Annotated[Principal, Depends(require_compliance)]
Repos = Annotated[Repositories, Depends(get_repos)]
Cache = Annotated[CacheService, Depends(get_cache)]
