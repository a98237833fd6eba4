from typing import Any, Dict, List, Optional
from fastapi import FastAPI, HTTPException, Request,status
from fastapi.exceptions import RequestValidationError
from eshop.common.constants import request_id_ctx
from eshop.common.logging_setup import get_logger
from eshop.common.utils import build_error, json_error

logger = get_logger("eshop.errors")


class StoreError(Exception):
    """Base for errors the storefront core reports to its caller."""

    code = "STORE_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_details(self) -> Dict[str, Any]:
        return {"message": self.message, **self.details}


class ValidationError(StoreError):
    """Malformed input, reported per field."""

    code = "VALIDATION_FAILED"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation failed"):
        super().__init__(message, {"errors": errors})
        self.errors = errors


class BusinessRuleError(StoreError):
    code = "BUSINESS_RULE"
    status_code = status.HTTP_400_BAD_REQUEST


class CouponRejected(BusinessRuleError):
    code = "COUPON_REJECTED"

    def __init__(self, message: str):
        super().__init__(message, {"errors": {"coupon_code": [message]}})


class StockShortfall(BusinessRuleError):
    code = "STOCK_SHORTFALL"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, shortfalls: List[Dict[str, Any]]):
        super().__init__("Stock availability issue", {"shortfalls": shortfalls})
        self.shortfalls = shortfalls


class NotFoundError(StoreError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class TransientStorageError(StoreError):
    """Commit time storage failure. Nothing was persisted so the caller may retry."""

    code = "STORAGE_UNAVAILABLE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Failed to process request, please retry"):
        super().__init__(message)


class ConflictError(StoreError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class AuthenticationError(StoreError):
    code = "INVALID_AUTH"
    status_code = status.HTTP_401_UNAUTHORIZED


async def store_error_handler(request: Request, exc: StoreError):
    rid = request_id_ctx.get(None)

    logger.warning(
        "request.store_error",
        extra={
            "code": exc.code,
            "reason": exc.message,
            "path": request.url.path,
            "method": request.method,
        },
    )

    payload = build_error(code=exc.code, details=exc.to_details(), request_id=rid)
    return json_error(payload, status_code=exc.status_code)


async def fallback_handler(request: Request, exc: Exception):

    rid = request_id_ctx.get(None)
    body = {"message": "Internal Server Error"}

    logger.error(
        "unexpected.exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "request_id": rid,
        },
        exc_info=exc,
    )

    payload = build_error(code="SERVER_ERROR", details=body, request_id=rid)
    return json_error(payload, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _field_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        errors.setdefault(field, []).append(err.get("msg", "invalid value"))
    return errors


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = request_id_ctx.get(None)
    errors = _field_errors(exc)
    logger.warning(
        "request.validation_failed",
        extra={
            "fields": sorted(errors),
            "path": request.url.path,
        },
    )

    payload = build_error(code="VALIDATION_FAILED", details={"message": "Validation failed", "errors": errors}, request_id=rid)
    return json_error(payload, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


async def http_exception_handler(request: Request, exc: HTTPException):

    rid = request_id_ctx.get(None)

    payload = build_error(code=f"HTTP_{exc.status_code}", details={"message":exc.detail}, request_id=rid)
    return json_error(payload, status_code=exc.status_code, headers=getattr(exc, "headers", None))


def register_all_exceptions(app: FastAPI):

    app.add_exception_handler(
        Exception, # catch all unidentified/unhandled exceptions
        fallback_handler
    )

    app.add_exception_handler(
        StoreError,
        store_error_handler
    )

    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler
    )

    app.add_exception_handler(
        HTTPException,
        http_exception_handler
    )
