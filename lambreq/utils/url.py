"""
URL ユーティリティ

URL 文字列からパスやクエリ文字列を取り出します。
"""


def get_query_string_from_url(url: str) -> str:
    """URL からクエリ文字列（先頭の ? とフラグメントを除く）を取得"""
    query_index = url.find("?")
    if query_index == -1:
        return ""

    query = url[query_index + 1 :]
    fragment_index = query.find("#")
    if fragment_index != -1:
        query = query[:fragment_index]
    return query


def get_path(url: str) -> str:
    """URL からパス部分を取得"""
    # スキームとオーソリティを除去
    scheme_index = url.find("://")
    if scheme_index != -1:
        slash_index = url.find("/", scheme_index + 3)
        if slash_index == -1:
            return "/"
        url = url[slash_index:]

    for delimiter in ("?", "#"):
        index = url.find(delimiter)
        if index != -1:
            url = url[:index]

    return url or "/"
