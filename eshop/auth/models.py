from typing import  Optional
from pydantic import BaseModel, Field


class SignupIn(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50, examples=["Asha"])
    last_name: str = Field(..., min_length=1, max_length=50, examples=["Rao"])
    email: str = Field(..., max_length=100, examples=["user@example.com"])
    password: str = Field(..., examples=["StrongPassword"])
    phone: Optional[str] = Field(None, max_length=15)

class SignIn(BaseModel):
    email: str = Field(...)
    password: str = Field(...)
    # storefronts that cannot send the guest cookie pass the guest id explicitly
    guest_session_id: Optional[str] = None
