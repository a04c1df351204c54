from fastapi import Request, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import Any, Callable


class APIException(Exception):
    """ Base class for all domain exceptions in the Food Delivery API. """

    def __init__(self, detail: str = None):
        super().__init__(detail)
        self.detail = detail


class UserNotFoundException(APIException):
    """ Exception is thrown when a referenced user does not exist. """
    pass


class CouponNotFoundException(APIException):
    """ Exception is thrown when no active coupon matches the supplied code. """
    pass


class CouponExpiredOrNotYetValidException(APIException):
    """ Exception is thrown when a coupon is used outside its validity window. """
    pass


class CouponNotApplicableToRestaurantException(APIException):
    """ Exception is thrown when a coupon is restricted to other restaurants. """
    pass


class CouponAlreadyUsedByUserException(APIException):
    """ Exception is thrown when the user already redeemed the coupon. """
    pass


class OrderValueBelowMinimumException(APIException):
    """ Exception is thrown when the order value is below the coupon's minimum. """

    def __init__(self, minimum: float):
        super().__init__(f"Minimum order value of {minimum:g} required")
        self.minimum = minimum


class CouponAlreadyRedeemedException(APIException):
    """ Exception is raised when a redemption commit finds the user already recorded. """
    pass


class CouponUsageLimitReachedException(APIException):
    """ Exception is raised when a redemption commit would exceed max uses. """
    pass


class CouponCodeExistsException(APIException):
    """ Exception is raised when an admin creates a duplicate coupon code. """
    pass


class MediaUploadFailedException(APIException):
    """ Exception is raised when the media store cannot store an upload. """
    pass


class NotFoundException(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class BadRequestException(HTTPException):
    def __init__(self, detail: str = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ConflictException(HTTPException):
    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


def error_body(message: Any) -> dict:
    return {"success": False, "message": message}


def create_exception_handler(status_code: int, detail: Any) -> Callable[[Request, Exception], JSONResponse]:
    async def exception_handler(request: Request, exception: APIException):
        return JSONResponse(
            content=error_body(getattr(exception, "detail", None) or detail),
            status_code=status_code
        )

    return exception_handler


async def http_exception_handler(request: Request, exception: HTTPException):
    return JSONResponse(
        content=error_body(exception.detail),
        status_code=exception.status_code,
        headers=getattr(exception, "headers", None),
    )


def _describe_validation_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    if "input" in error and error.get("type") not in ("missing", "value_error"):
        message = f"{message} (got {error['input']!r})"
    return f"{location}: {message}" if location else message


async def validation_exception_handler(request: Request, exception: RequestValidationError):
    errors = exception.errors()
    message = _describe_validation_error(errors[0]) if errors else "Invalid request"
    return JSONResponse(content=error_body(message), status_code=status.HTTP_400_BAD_REQUEST)
