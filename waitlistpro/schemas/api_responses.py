"""
Request and response schemas for the public and dashboard endpoints.
Field names match the JSON the signup widget and dashboard send.
"""
from typing import Literal, Optional
from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str
    password: str
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    user_id: str
    email: str
    name: Optional[str] = None


class SignupRequest(BaseModel):
    email: str
    ref: Optional[str] = None


class VerifyRequest(BaseModel):
    token: str


class PositionRequest(BaseModel):
    referralCode: str


class CreateWaitlistRequest(BaseModel):
    name: str
    description: Optional[str] = None


class WaitlistSettingsUpdate(BaseModel):
    primaryColor: Optional[str] = None
    buttonText: Optional[str] = None
    successMessage: Optional[str] = None
    showCount: Optional[bool] = None


class UpdateWaitlistRequest(BaseModel):
    description: Optional[str] = None
    settings: Optional[WaitlistSettingsUpdate] = None


class CreateRewardRequest(BaseModel):
    threshold: int = Field(ge=1)
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None


class BatchInviteRequest(BaseModel):
    count: int = Field(default=100, ge=1, le=10000)
    filter: Literal["top", "advocates"] = "top"
    customMessage: Optional[str] = None
    skipAlreadyInvited: bool = True


class BatchInviteResponse(BaseModel):
    success: bool = True
    sent: int
    failed: int
    total: int
    errors: list[str] = []


class ExportRequest(BaseModel):
    format: Literal["csv", "json"] = "csv"
    filter: Literal["all", "verified", "unverified", "advocates"] = "all"
