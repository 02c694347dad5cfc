"""
Request クラス

イミュータブルな BaseRequest をラップし、パスパラメータ・ヘッダー・クエリ・Cookie・
ボディ解析・バリデーション済みデータへのアクセスを提供するファサードです。
ファサード自身が持たない属性はすべてラップ元のリクエストに委譲されます。
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar, Union, overload
from urllib.parse import parse_qsl, unquote

from .base_request import BaseRequest, BodyInit, HeadersInit
from .config import DEFAULT_CONFIG, RequestConfig
from .json_handler import JSONHandler
from .utils.body import BodyData, parse_body
from .utils.cookie import Cookie, parse as parse_cookie
from .utils.url import get_query_string_from_url

logger = logging.getLogger(__name__)

Data = TypeVar("Data")

# 未計算を表す番兵（None や {} もキャッシュ対象にするため）
_UNSET: Any = object()

# ファサード自身が提供する属性。これ以外はラップ元に委譲する
_OWN_ATTRIBUTES = frozenset(
    (
        "req",
        "config",
        "param_data",
        "_header_data",
        "_query_data",
        "_body_data",
        "_json_data",
        "_data",
    )
)


class Request(Generic[Data]):
    """リクエストファサード

    ``Request(request)`` に既存のファサードを渡すと同じインスタンスを返します。
    BaseRequest またはリクエスト構築用の引数を渡すと、新しいファサードを作成します。
    """

    __slots__ = tuple(_OWN_ATTRIBUTES)

    req: BaseRequest
    config: RequestConfig
    param_data: Optional[Dict[str, str]]

    def __new__(
        cls,
        input: Union["Request", BaseRequest, str],
        method: str = "GET",
        headers: HeadersInit = None,
        body: BodyInit = None,
        config: Optional[RequestConfig] = None,
    ) -> "Request":
        if isinstance(input, Request):
            return input

        req = input if isinstance(input, BaseRequest) else BaseRequest(input, method, headers, body)

        self = super().__new__(cls)
        object.__setattr__(self, "req", req)
        object.__setattr__(self, "config", config or DEFAULT_CONFIG)
        object.__setattr__(self, "param_data", None)
        object.__setattr__(self, "_header_data", _UNSET)
        object.__setattr__(self, "_query_data", _UNSET)
        object.__setattr__(self, "_body_data", _UNSET)
        object.__setattr__(self, "_json_data", _UNSET)
        object.__setattr__(self, "_data", _UNSET)
        return self

    @classmethod
    def from_event(
        cls,
        event: Dict[str, Any],
        path_params: Optional[Dict[str, str]] = None,
        config: Optional[RequestConfig] = None,
    ) -> "Request":
        """Lambda プロキシイベントからファサードを作成し、パスパラメータを設定"""
        request = cls(BaseRequest.from_event(event), config=config)
        params = path_params if path_params is not None else event.get("pathParameters")
        if params:
            request.param_data = dict(params)
        return request

    def __getattr__(self, name: str) -> Any:
        # ファサードに存在しない属性のみここに到達する
        if name in _OWN_ATTRIBUTES:
            raise AttributeError(name)
        return getattr(self.req, name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in _OWN_ATTRIBUTES:
            raise AttributeError(f"Request is immutable: cannot set '{name}'")
        object.__setattr__(self, name, value)

    def __dir__(self) -> List[str]:
        return sorted(set(super().__dir__()) | set(dir(self.req)))

    def __repr__(self) -> str:
        return f"Request(method={self.req.method!r}, url={self.req.url!r})"

    @overload
    def param(self) -> Dict[str, str]: ...

    @overload
    def param(self, key: str) -> Optional[str]: ...

    def param(self, key: Optional[str] = None) -> Union[Dict[str, str], Optional[str]]:
        """パスパラメータを取得（毎回パーセントデコードする）"""
        if key:
            if not self.param_data:
                return None
            value = self.param_data.get(key)
            return unquote(value) if value else None

        if not self.param_data:
            return {}
        return {
            name: unquote(value)
            for name, value in self.param_data.items()
            if isinstance(value, str)
        }

    @overload
    def header(self) -> Dict[str, str]: ...

    @overload
    def header(self, name: str) -> Optional[str]: ...

    def header(self, name: Optional[str] = None) -> Union[Dict[str, str], Optional[str]]:
        """リクエストヘッダーを取得（名前は大文字小文字を区別しない）"""
        if self._header_data is _UNSET:
            self._header_data = {key.lower(): value for key, value in self.req.headers.items()}
            logger.debug("ヘッダーをキャッシュしました: %d 件", len(self._header_data))

        if name:
            return self._header_data.get(name.lower())
        return self._header_data

    @overload
    def query(self) -> Dict[str, str]: ...

    @overload
    def query(self, key: str) -> Optional[str]: ...

    def query(self, key: Optional[str] = None) -> Union[Dict[str, str], Optional[str]]:
        """クエリパラメータを取得（キーごとに最初の値）"""
        if self._query_data is _UNSET:
            query_data: Dict[str, str] = {}
            for name, value in self._parse_query():
                query_data.setdefault(name, value)
            self._query_data = query_data
            logger.debug("クエリパラメータをキャッシュしました: %d 件", len(query_data))

        if key:
            return self._query_data.get(key)
        return self._query_data

    @overload
    def queries(self) -> Dict[str, List[str]]: ...

    @overload
    def queries(self, key: str) -> List[str]: ...

    def queries(self, key: Optional[str] = None) -> Union[Dict[str, List[str]], List[str]]:
        """クエリパラメータを取得（キーごとにすべての値）"""
        pairs = self._parse_query()
        if key:
            return [value for name, value in pairs if name == key]

        result: Dict[str, List[str]] = {}
        for name, value in pairs:
            result.setdefault(name, []).append(value)
        return result

    def _parse_query(self) -> List[Tuple[str, str]]:
        return parse_qsl(get_query_string_from_url(self.req.url), keep_blank_values=True)

    @overload
    def cookie(self) -> Cookie: ...

    @overload
    def cookie(self, key: str) -> Optional[str]: ...

    def cookie(self, key: Optional[str] = None) -> Union[Cookie, Optional[str]]:
        """Cookie を取得（毎回 Cookie ヘッダーを解析する）"""
        cookies = parse_cookie(self.req.headers.get("cookie", ""))
        if key:
            return cookies.get(key) or None
        return cookies

    def parse_body(self) -> BodyData:
        """フォームボディを解析（初回のみ解析し、以降はキャッシュを返す）"""
        if self._body_data is _UNSET:
            self._body_data = parse_body(self.req, self.config)
            logger.debug("ボディを解析しました: %s", self.req.content_type or "(no content-type)")
        return self._body_data

    def json(self) -> Any:
        """JSON ボディを解析（初回のみ解析し、以降はキャッシュを返す）

        Raises:
            MalformedJSONError: ボディが JSON として不正な場合
            BodyAlreadyUsedError: ボディが既に消費されている場合
        """
        if self._json_data is _UNSET:
            self._json_data = JSONHandler.loads(self.req.read())
            logger.debug("JSON ボディを解析しました")
        return self._json_data

    def valid(self, data: Any = _UNSET) -> Data:
        """バリデーション済みデータを取得・設定"""
        if data is not _UNSET:
            self._data = data
        elif self._data is _UNSET:
            self._data = {}
        return self._data

    def clone(self) -> "Request[Data]":
        """独立したボディを持つファサードを作成（キャッシュは引き継がない）"""
        logger.debug("リクエストを複製します: %s %s", self.req.method, self.req.url)
        return Request(self.req.clone(), config=self.config)


BaseRequest.register(Request)
