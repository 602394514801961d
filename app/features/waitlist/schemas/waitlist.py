from typing import Optional

from pydantic import BaseModel, Field


class WaitlistIn(BaseModel):
    # Checked by the orchestrator so a bad address is a 400 with no side effects.
    email: Optional[str] = None
    referred_by: Optional[str] = Field(None, alias="referredBy", description="Referrer's code")

    class Config:
        populate_by_name = True


class WaitlistOut(BaseModel):
    success: bool = True
    referral_code: str = Field(..., alias="referralCode")
    referral_link: str = Field(..., alias="referralLink")
    already_signed_up: bool = Field(False, alias="alreadySignedUp")

    class Config:
        populate_by_name = True


class ErrorOut(BaseModel):
    error: str
