from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.security import issue_access_token
from ..crud.users import authenticate_user, create_user
from ..db.session import get_db
from ..schemas.auth import CredentialsRequest, LoginResponse, RegisterResponse

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
def register(payload: CredentialsRequest, db: Session = Depends(get_db)):
    user = create_user(db, payload.username, payload.password)
    return RegisterResponse(message="User registered successfully", user_id=user.id)


@router.post("/login", response_model=LoginResponse, summary="Exchange credentials for a bearer token")
def login(payload: CredentialsRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, payload.username, payload.password)
    token = issue_access_token(user.id)
    logger.info("users.login", extra={"extra_data": {"user_id": user.id}})
    return LoginResponse(message="Login successful", token=token)
