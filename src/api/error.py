"""API error type and its JSON rendering"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from libs.result import Error
from src.app.use_cases.error_codes import ErrorCode

ERROR_STATUS_CODES = {
    ErrorCode.COMPANY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.PAYMENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.REFUND_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INSUFFICIENT_CREDIT: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.AMOUNT_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.UNSUPPORTED_METHOD: status.HTTP_409_CONFLICT,
    ErrorCode.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorCode.GATEWAY_FAILURE: status.HTTP_502_BAD_GATEWAY,
}


class ClientError(Exception):
    """
    Raised by routes for a failed use case Result

    status_code defaults to the mapping for error.code; unknown codes
    (store failures) are 500.
    """

    def __init__(self, error: Error, status_code: int = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or ERROR_STATUS_CODES.get(
            error.code, status.HTTP_500_INTERNAL_SERVER_ERROR
        )


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    body = {"code": exc.error.code, "message": exc.error.message}
    if exc.error.reason:
        body["reason"] = exc.error.reason
    return JSONResponse(status_code=exc.status_code, content={"error": body})
