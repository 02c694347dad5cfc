"""
BaseRequest クラス

イミュータブルな HTTP リクエスト値を提供します。
ボディは一度だけ読み出せるストリームとして保持します。
"""

import base64
import binascii
import io
import logging
from abc import ABC
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode

from .exceptions import BodyAlreadyUsedError, InvalidRequestError, RequestCloneError
from .json_handler import JSONHandler
from .utils.url import get_path

logger = logging.getLogger(__name__)

HeadersInit = Union[Mapping[str, str], Iterable[Tuple[str, str]], None]
BodyInit = Union[bytes, bytearray, str, None]


class Headers(Mapping[str, str]):
    """大文字小文字を区別しない読み取り専用ヘッダーコレクション"""

    __slots__ = ("_items",)

    def __init__(self, init: HeadersInit = None) -> None:
        if isinstance(init, Headers):
            items: List[Tuple[str, str]] = list(init._items)
        elif init is None:
            items = []
        elif isinstance(init, Mapping):
            items = [(str(k).lower(), str(v)) for k, v in init.items()]
        else:
            items = [(str(k).lower(), str(v)) for k, v in init]
        self._items = tuple(items)

    def __getitem__(self, name: str) -> str:
        values = self.get_all(name)
        if not values:
            raise KeyError(name)
        return ", ".join(values)

    def __iter__(self) -> Iterator[str]:
        seen = set()
        for key, _ in self._items:
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return len({key for key, _ in self._items})

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        lowered = name.lower()
        return any(key == lowered for key, _ in self._items)

    def get_all(self, name: str) -> List[str]:
        """同名ヘッダーの値をすべて取得（Set-Cookie 用）"""
        lowered = name.lower()
        return [value for key, value in self._items if key == lowered]

    def raw_items(self) -> List[Tuple[str, str]]:
        """結合前のヘッダーを取得"""
        return list(self._items)

    def __repr__(self) -> str:
        return f"Headers({dict(self)!r})"


class BaseRequest(ABC):
    """イミュータブルな HTTP リクエスト

    リクエストファサードはこのクラスの仮想サブクラスとして登録されるため、
    ``isinstance(request, BaseRequest)`` はファサードに対しても成立します。
    """

    __slots__ = ("_url", "_method", "_headers", "_body", "_body_used")

    def __init__(
        self,
        url: str,
        method: str = "GET",
        headers: HeadersInit = None,
        body: BodyInit = None,
    ) -> None:
        if not url:
            raise InvalidRequestError("url is required")

        if isinstance(body, str):
            body = body.encode("utf-8")

        object.__setattr__(self, "_url", str(url))
        object.__setattr__(self, "_method", (method or "GET").upper())
        object.__setattr__(self, "_headers", Headers(headers))
        object.__setattr__(self, "_body", io.BytesIO(bytes(body)) if body is not None else None)
        object.__setattr__(self, "_body_used", False)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable: cannot set '{name}'")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable: cannot delete '{name}'")

    @property
    def url(self) -> str:
        """リクエスト URL を取得"""
        return self._url

    @property
    def method(self) -> str:
        """HTTP メソッドを取得"""
        return self._method

    @property
    def headers(self) -> Headers:
        """リクエストヘッダーを取得"""
        return self._headers

    @property
    def body(self) -> Optional[io.BytesIO]:
        """ボディストリームを取得（ボディがない場合は None）"""
        return self._body

    @property
    def body_used(self) -> bool:
        """ボディが消費済みかどうか"""
        return self._body_used

    @property
    def path(self) -> str:
        """リクエストパスを取得"""
        return get_path(self._url)

    @property
    def content_type(self) -> str:
        """Content-Type ヘッダーを取得"""
        return self._headers.get("content-type", "")

    def read(self) -> bytes:
        """ボディを読み出す（一度だけ）"""
        if self._body_used:
            raise BodyAlreadyUsedError()
        if self._body is None:
            return b""

        object.__setattr__(self, "_body_used", True)
        return self._body.read()

    def text(self, charset: str = "utf-8") -> str:
        """ボディを文字列として読み出す"""
        return self.read().decode(charset)

    def json(self) -> Any:
        """ボディを JSON としてパース"""
        return JSONHandler.loads(self.read())

    def clone(self) -> "BaseRequest":
        """独立したボディストリームを持つ複製を作成"""
        if self._body_used:
            raise RequestCloneError(details={"url": self._url})

        body = self._body.getvalue() if self._body is not None else None
        return BaseRequest(self._url, self._method, self._headers, body)

    @classmethod
    def from_event(cls, event: Dict[str, Any]) -> "BaseRequest":
        """API Gateway の Lambda プロキシイベントからリクエストを作成

        REST API (ペイロード 1.0) と HTTP API (ペイロード 2.0) の両方に対応します。
        """
        request_context = event.get("requestContext") or {}
        is_v2 = event.get("version") == "2.0"

        headers = _event_headers(event)
        if is_v2:
            method = request_context.get("http", {}).get("method", "GET")
            path = event.get("rawPath") or "/"
            query = event.get("rawQueryString") or ""
            cookies = event.get("cookies")
            if cookies and not any(key == "cookie" for key, _ in headers):
                headers.append(("cookie", "; ".join(cookies)))
        else:
            method = event.get("httpMethod", "GET")
            path = event.get("path") or "/"
            query = _event_query_string(event)

        host_headers = [value for key, value in headers if key == "host"]
        host = host_headers[0] if host_headers else request_context.get("domainName", "localhost")
        proto_headers = [value for key, value in headers if key == "x-forwarded-proto"]
        scheme = proto_headers[0] if proto_headers else "https"

        url = f"{scheme}://{host}{path}"
        if query:
            url = f"{url}?{query}"

        body: BodyInit = event.get("body")
        if body is not None and event.get("isBase64Encoded"):
            try:
                body = base64.b64decode(body)
            except (binascii.Error, ValueError) as e:
                raise InvalidRequestError(
                    "Invalid base64 encoded body", details={"reason": str(e)}
                ) from e

        logger.debug("Lambda イベントからリクエストを作成: %s %s", method, url)
        return BaseRequest(url, method, headers, body)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(method={self._method!r}, url={self._url!r})"


def _event_headers(event: Dict[str, Any]) -> List[Tuple[str, str]]:
    """イベントからヘッダー一覧を取得（複数値ヘッダーを優先）"""
    multi_value = event.get("multiValueHeaders")
    if multi_value:
        return [
            (str(name).lower(), str(value))
            for name, values in multi_value.items()
            for value in (values or [])
        ]

    headers = event.get("headers") or {}
    return [(str(name).lower(), str(value)) for name, value in headers.items()]


def _event_query_string(event: Dict[str, Any]) -> str:
    """REST API イベントのクエリパラメータからクエリ文字列を再構築"""
    multi_value = event.get("multiValueQueryStringParameters")
    if multi_value:
        return urlencode(
            [(name, value) for name, values in multi_value.items() for value in (values or [])]
        )

    params = event.get("queryStringParameters") or {}
    return urlencode([(name, value) for name, value in params.items() if value is not None])
