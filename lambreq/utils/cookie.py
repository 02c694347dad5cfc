"""
Cookie ユーティリティ

Cookie ヘッダーの解析を提供します。
"""

from typing import Dict
from urllib.parse import unquote

Cookie = Dict[str, str]


def parse(cookie: str) -> Cookie:
    """Cookie ヘッダー文字列を名前と値の辞書に変換

    値はダブルクォートを外してパーセントデコードします。
    同じ名前が複数ある場合は先に現れた値を優先します。
    """
    parsed: Cookie = {}
    if not cookie:
        return parsed

    for pair in cookie.split(";"):
        pair = pair.strip()
        if not pair or "=" not in pair:
            continue

        name, value = pair.split("=", 1)
        name = name.strip()
        if not name or name in parsed:
            continue

        value = value.strip()
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1]

        parsed[name] = unquote(value)

    return parsed
