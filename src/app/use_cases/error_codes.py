"""Stable error codes returned in libs.result.Error.code"""


class ErrorCode:
    COMPANY_NOT_FOUND = "COMPANY_NOT_FOUND"
    PAYMENT_NOT_FOUND = "PAYMENT_NOT_FOUND"
    REFUND_NOT_FOUND = "REFUND_NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INSUFFICIENT_CREDIT = "INSUFFICIENT_CREDIT"
    AMOUNT_EXCEEDED = "AMOUNT_EXCEEDED"
    INVALID_STATE = "INVALID_STATE"
    UNSUPPORTED_METHOD = "UNSUPPORTED_METHOD"
    UNAUTHORIZED = "UNAUTHORIZED"
    GATEWAY_FAILURE = "GATEWAY_FAILURE"

    NOT_FOUND_CODES = frozenset({COMPANY_NOT_FOUND, PAYMENT_NOT_FOUND, REFUND_NOT_FOUND})
