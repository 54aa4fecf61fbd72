"""Dev-only token minting.

Real tokens come from the corporate identity provider.  For local work
against the API (and the Swagger "Authorize" button) this endpoint signs
a token for any identity.  It is only mounted when APP_ENV=dev.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel

from lms.services import token_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dev", tags=["dev"])


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/token", response_model=Token)
def mint_dev_token(
    form: Annotated[OAuth2PasswordRequestForm, Depends()],
    department: Annotated[str | None, Form()] = None,
) -> Token:
    """Password is ignored; roles come from the requested scopes.

    ``scope=compliance`` yields a compliance token, no scope an employee one.
    """
    roles = form.scopes or ["employee"]
    logger.info("Dev token minted user=%s roles=%s", form.username, roles)
    token = token_service.create_access_token(
        sub=form.username,
        roles=roles,
        name=form.username,
        department=department,
    )
    return Token(access_token=token)
