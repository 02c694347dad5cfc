"""
lambreq

AWS Lambda 用 HTTP ハンドラーのためのリクエストファサード

使用例:
    from lambreq import Request

    def lambda_handler(event, context):
        req = Request.from_event(event)

        user_id = req.param("user_id")
        page = req.query("page")
        token = req.header("Authorization")
        ...
"""

from .base_request import BaseRequest, Headers
from .request import Request
from .config import RequestConfig, create_request_config, enable_debug_logging
from .json_handler import JSONHandler
from .utils import parse_body, UploadFile, parse_cookie
from .validation import validator, validate_many, validate_and_convert
from .exceptions import (
    APIError,
    ValidationError,
    MalformedJSONError,
    InvalidRequestError,
    BodyAlreadyUsedError,
    RequestCloneError,
    PayloadTooLargeError,
)

__version__ = "0.1.0"

__all__ = [
    "BaseRequest",
    "Headers",
    "Request",
    "RequestConfig",
    "create_request_config",
    "enable_debug_logging",
    "JSONHandler",
    "parse_body",
    "UploadFile",
    "parse_cookie",
    "validator",
    "validate_many",
    "validate_and_convert",
    "APIError",
    "ValidationError",
    "MalformedJSONError",
    "InvalidRequestError",
    "BodyAlreadyUsedError",
    "RequestCloneError",
    "PayloadTooLargeError",
]
