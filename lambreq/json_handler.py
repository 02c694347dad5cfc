"""
JSON 処理統一ハンドラー

リクエストボディの JSON デコードを提供します。
orjson がインストールされていればそちらを使用します。
"""

import json
from typing import Any, Union

from .exceptions import MalformedJSONError

# オプション: orjson による更なる高速化
try:
    import orjson

    HAS_ORJSON = True
except ImportError:
    HAS_ORJSON = False


class JSONHandler:
    """JSON 処理の統一インターフェース"""

    @staticmethod
    def loads(data: Union[str, bytes]) -> Any:
        """
        JSON パース

        Args:
            data: JSON 文字列またはバイト列

        Returns:
            Any: パースされた値（オブジェクト以外の JSON 値もそのまま返す）

        Raises:
            MalformedJSONError: 空データや無効な JSON の場合
        """
        if not data:
            raise MalformedJSONError("Unexpected end of JSON input")

        try:
            if HAS_ORJSON:
                # orjson は文字列とバイト列の両方を受け入れる
                return orjson.loads(data)
            # 標準 json モジュールは文字列のみ
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            return json.loads(data)
        except json.JSONDecodeError as e:
            # orjson.JSONDecodeError も json.JSONDecodeError のサブクラス
            raise MalformedJSONError(f"Malformed JSON in request body: {e.msg}", e.pos) from e
        except UnicodeDecodeError as e:
            raise MalformedJSONError("Request body is not valid UTF-8") from e

    @staticmethod
    def is_json_content_type(content_type: str) -> bool:
        """Content-Type が JSON 系かどうかを判定"""
        mime = content_type.split(";", 1)[0].strip().lower()
        return mime == "application/json" or mime.endswith("+json")
