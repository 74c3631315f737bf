from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CredentialsRequest(BaseModel):
    # Optional so that missing fields reach the handler and come back as a 400.
    username: Optional[str] = None
    password: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {"username": "ada", "password": "correct horse battery staple"}
        },
    }


class RegisterResponse(BaseModel):
    message: str
    user_id: int = Field(..., alias="userId")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {"message": "User registered successfully", "userId": 1}
        },
    }


class LoginResponse(BaseModel):
    message: str
    token: str

    model_config = {
        "json_schema_extra": {
            "example": {"message": "Login successful", "token": "<jwt>"}
        }
    }
