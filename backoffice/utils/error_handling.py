"""
Error Handling Module for the POS Back Office

This module provides centralized error handling with:
- Custom exception hierarchy
- Standardized error responses
- Error logging
- Ledger and tenancy specific business errors
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import UUID
import logging

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    DataError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("backoffice.errors")


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""

    # Validation Errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"

    # Authentication/Authorization Errors (401/403)
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    COMPANY_ACCESS_REQUIRED = "COMPANY_ACCESS_REQUIRED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Resource Errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    REFERENCE_SEQUENCE_EXHAUSTED = "REFERENCE_SEQUENCE_EXHAUSTED"

    # Business Logic Errors (400/403)
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    UNBALANCED_ENTRY = "UNBALANCED_ENTRY"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    FINANCIAL_YEAR_CLOSED = "FINANCIAL_YEAR_CLOSED"
    CANNOT_MODIFY = "CANNOT_MODIFY"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # Database Errors (500)
    DATABASE_ERROR = "DATABASE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DATA_INTEGRITY_ERROR = "DATA_INTEGRITY_ERROR"

    # Internal Errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base exception for all application exceptions"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.original_error = original_error
        self.timestamp = _utc_timestamp()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        result = {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(AppException):
    """Base validation exception"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            field=field,
        )


class InvalidDateRangeException(ValidationException):
    """Invalid date range"""

    def __init__(self, start_date: Any, end_date: Any, message: Optional[str] = None):
        super().__init__(
            message=message or f"Invalid date range: {start_date} to {end_date}. Start date must be before end date.",
            code=ErrorCode.INVALID_DATE_RANGE,
            details={"start_date": str(start_date), "end_date": str(end_date)},
        )


# ============================================================================
# Authorization Exceptions
# ============================================================================

class AuthorizationException(AppException):
    """Base authorization exception"""

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        code: ErrorCode = ErrorCode.FORBIDDEN,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
        )


class CompanyAccessRequiredException(AuthorizationException):
    """User is not attached to a company"""

    def __init__(self):
        super().__init__(
            message="Company access required. Please ensure you are assigned to a company.",
            code=ErrorCode.COMPANY_ACCESS_REQUIRED,
        )


class InsufficientPermissionsException(AuthorizationException):
    """User lacks the role required for an action"""

    def __init__(self, required_role: str, action: Optional[str] = None):
        message = f"Only {required_role} users can perform this action"
        if action:
            message = f"Only {required_role} users can {action}"
        super().__init__(
            message=message,
            code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            details={"required_role": required_role},
        )


# ============================================================================
# Resource Exceptions
# ============================================================================

class NotFoundException(AppException):
    """Resource not found exception"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[Union[str, UUID]] = None,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.NOT_FOUND,
    ):
        if message is None:
            if resource_id:
                message = f"{resource_type} with ID '{resource_id}' not found"
            else:
                message = f"{resource_type} not found"
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id) if resource_id else None},
        )


class ConflictException(AppException):
    """Resource conflict exception"""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if resource_type:
            _details["resource_type"] = resource_type
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=_details,
        )


class DuplicateEntryException(ConflictException):
    """Duplicate entry exception"""

    def __init__(
        self,
        resource_type: str,
        field: str,
        value: str,
    ):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            resource_type=resource_type,
            code=ErrorCode.DUPLICATE_ENTRY,
            details={"field": field, "value": value},
        )


class ReferenceSequenceExhaustedException(ConflictException):
    """A unique document number could not be allocated"""

    def __init__(self, resource_type: str, attempts: int):
        super().__init__(
            message=f"Failed to generate a unique {resource_type} reference number after {attempts} attempts",
            resource_type=resource_type,
            code=ErrorCode.REFERENCE_SEQUENCE_EXHAUSTED,
            details={"attempts": attempts},
        )


# ============================================================================
# Business Logic Exceptions
# ============================================================================

class BusinessRuleException(AppException):
    """Business rule violation exception"""

    def __init__(
        self,
        message: str,
        rule: Optional[str] = None,
        code: ErrorCode = ErrorCode.BUSINESS_RULE_VIOLATION,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
    ):
        _details = details or {}
        if rule:
            _details["violated_rule"] = rule
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=_details,
            field=field,
        )


class UnbalancedEntryException(BusinessRuleException):
    """Debits and credits do not agree"""

    def __init__(self, total_debit: Decimal, total_credit: Decimal, message: Optional[str] = None):
        super().__init__(
            message=message or (
                f"Journal entry must be balanced. Total debit: {total_debit}, total credit: {total_credit}"
            ),
            rule="DEBITS_EQUAL_CREDITS",
            code=ErrorCode.UNBALANCED_ENTRY,
            details={
                "total_debit": str(total_debit),
                "total_credit": str(total_credit),
                "difference": str(total_debit - total_credit),
            },
        )


class InsufficientBalanceException(BusinessRuleException):
    """A line would push an account past its available balance"""

    def __init__(self, message: str, account_id: Optional[UUID] = None, line_number: Optional[int] = None):
        details: Dict[str, Any] = {}
        if account_id:
            details["account_id"] = str(account_id)
        if line_number is not None:
            details["line_number"] = line_number
        super().__init__(
            message=message,
            rule="SUFFICIENT_ACCOUNT_BALANCE",
            code=ErrorCode.INSUFFICIENT_BALANCE,
            details=details,
        )


class ClosedFinancialYearException(BusinessRuleException):
    """Posting into a closed financial year"""

    def __init__(self, financial_year_name: str):
        super().__init__(
            message=f"Financial year '{financial_year_name}' is closed. Transactions cannot be posted to a closed year.",
            rule="FINANCIAL_YEAR_OPEN",
            code=ErrorCode.FINANCIAL_YEAR_CLOSED,
            details={"financial_year": financial_year_name},
        )


class InvalidStatusTransitionException(BusinessRuleException):
    """Document is not in a state that allows the requested action"""

    def __init__(self, resource_type: str, current_status: str, action: str, allowed: Optional[list] = None):
        message = f"Cannot {action} {resource_type} in status '{current_status}'"
        if allowed:
            message += f". Allowed: {', '.join(allowed)}"
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_STATUS_TRANSITION,
            details={"current_status": current_status, "action": action, "allowed": allowed or []},
        )


class PostedEntryLockedException(AppException):
    """Posted documents can only be changed after unposting"""

    def __init__(self, reference_number: str, action: str = "modify"):
        super().__init__(
            code=ErrorCode.CANNOT_MODIFY,
            message=f"Cannot {action} posted journal entry {reference_number}. Unpost it first.",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"reference_number": reference_number},
        )


class PastYearLockedException(AppException):
    """Records of a financial year other than the current one are read-only"""

    def __init__(self, resource_type: str, action: str = "modify"):
        super().__init__(
            code=ErrorCode.CANNOT_MODIFY,
            message=f"Cannot {action} {resource_type} of a previous financial year",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"resource_type": resource_type},
        )


# ============================================================================
# Exception Handlers
# ============================================================================

def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    field: Optional[str] = None,
) -> JSONResponse:
    """Create a standardized error response"""
    content = {
        "detail": {
            "code": code.value,
            "message": message,
            "timestamp": _utc_timestamp(),
        }
    }
    if field:
        content["detail"]["field"] = field
    if details:
        content["detail"]["details"] = details

    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle AppException"""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        f"AppException: {exc.code.value} - {exc.message}",
        extra={
            "code": exc.code.value,
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=exc.original_error,
    )

    return create_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        field=exc.field,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPException"""
    code_map = {
        400: ErrorCode.INVALID_INPUT,
        401: ErrorCode.UNAUTHORIZED,
        403: ErrorCode.FORBIDDEN,
        404: ErrorCode.NOT_FOUND,
        409: ErrorCode.RESOURCE_CONFLICT,
        422: ErrorCode.VALIDATION_ERROR,
        500: ErrorCode.INTERNAL_ERROR,
    }

    error_code = code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    logger.warning(
        f"HTTPException: {exc.status_code} - {message}",
        extra={"path": request.url.path, "method": request.method},
    )

    response = create_error_response(
        code=error_code,
        message=message,
        status_code=exc.status_code,
    )
    headers = getattr(exc, "headers", None)
    if headers:
        response.headers.update(headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors"""
    errors = []
    for error in exc.errors():
        loc = list(error["loc"])
        if len(loc) > 1 and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        field = ".".join(str(part) for part in loc)
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"ValidationError: {len(errors)} validation errors",
        extra={"path": request.url.path, "method": request.method},
    )

    return create_error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors},
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy errors"""
    error_message = "A database error occurred"
    error_code = ErrorCode.DATABASE_ERROR
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, IntegrityError):
        error_message = "Data integrity constraint violated"
        error_code = ErrorCode.DATA_INTEGRITY_ERROR
        error_str = str(exc.orig).lower() if exc.orig else ""
        if "unique" in error_str or "duplicate" in error_str:
            error_message = "A record with this value already exists"
            error_code = ErrorCode.DUPLICATE_ENTRY
            status_code = status.HTTP_409_CONFLICT
        elif "foreign key" in error_str:
            error_message = "Referenced record does not exist"
            status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(exc, OperationalError):
        error_message = "Database operation failed"
        error_code = ErrorCode.CONNECTION_ERROR
    elif isinstance(exc, DataError):
        error_message = "Invalid data format for database"
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    logger.error(
        f"SQLAlchemyError: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    return create_error_response(
        code=error_code,
        message=error_message,
        status_code=status_code,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions"""
    logger.critical(
        f"UnhandledException: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    return create_error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    # Base
    "AppException",
    "ErrorCode",

    # Validation
    "ValidationException",
    "InvalidDateRangeException",

    # Auth
    "AuthorizationException",
    "CompanyAccessRequiredException",
    "InsufficientPermissionsException",

    # Resource
    "NotFoundException",
    "ConflictException",
    "DuplicateEntryException",
    "ReferenceSequenceExhaustedException",

    # Business Logic
    "BusinessRuleException",
    "UnbalancedEntryException",
    "InsufficientBalanceException",
    "ClosedFinancialYearException",
    "InvalidStatusTransitionException",
    "PostedEntryLockedException",

    # Handlers
    "setup_exception_handlers",
    "create_error_response",
]
