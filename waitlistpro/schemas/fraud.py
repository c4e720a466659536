"""
Fraud check schemas - result of evaluating one signup attempt.
"""
from typing import Optional
from pydantic import BaseModel, Field


class FraudFlags(BaseModel):
    disposableEmail: bool = False
    suspiciousPattern: bool = False
    sameIpReferral: bool = False
    ipRateLimit: bool = False
    rapidSignup: bool = False


class FraudCheckResult(BaseModel):
    is_valid: bool
    flags: FraudFlags = Field(default_factory=FraudFlags)
    score: int = Field(default=0, description="Weighted sum, higher = more suspicious")
    reason: Optional[str] = None
