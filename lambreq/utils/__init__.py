"""
ユーティリティ関数

リクエストファサードが利用するステートレスなヘルパーを提供します。
"""

from .body import parse_body, UploadFile
from .cookie import parse as parse_cookie
from .url import get_query_string_from_url, get_path

__all__ = [
    "parse_body",
    "UploadFile",
    "parse_cookie",
    "get_query_string_from_url",
    "get_path",
]
