from typing import Optional
from email_validator import validate_email, EmailNotValidError
from fastapi import Header
from eshop.auth.constants import logger
from eshop.auth.models import SignupIn
from eshop.auth.utils import validate_password
from eshop.common.custom_exceptions import ValidationError
from eshop.identity.utils import bearer_token_from_header


def normalize_email_address(email: str) -> str:
    """
    Validate and return normalized email (lowercased, normalized by email-validator).
    Raises ValueError if invalid.
    """
    try:
        v = validate_email(email, check_deliverability=False)
        return v.normalized.lower()
    except EmailNotValidError as e:
        raise ValueError(str(e))


async def signup_validation(payload: SignupIn) -> SignupIn:
    try:
        email = normalize_email_address(payload.email)
    except ValueError as e:
        logger.warning("signup.validation.email_invalid", extra={"error": str(e)})
        raise ValidationError({"email": [f"Invalid email: {e}"]})

    is_valid, detail = validate_password(payload.password)
    if not is_valid:
        logger.warning("signup.validation.password_invalid", extra={"reason": detail})
        raise ValidationError({"password": [detail]})

    return payload.model_copy(update={"email": email})


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    return bearer_token_from_header(authorization)
