"""
ボディ解析

Content-Type に応じてフォームデータ（multipart / url-encoded）を辞書に変換します。
"""

import logging
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.parser import BytesParser
from email.policy import HTTP
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import parse_qsl

from ..config import DEFAULT_CONFIG, RequestConfig
from ..exceptions import PayloadTooLargeError, ValidationError

logger = logging.getLogger(__name__)

FORM_URLENCODED = "application/x-www-form-urlencoded"
MULTIPART_FORM_DATA = "multipart/form-data"


@dataclass
class UploadFile:
    """multipart でアップロードされたファイル"""

    filename: str
    content: bytes = field(repr=False)
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    def text(self, charset: str = "utf-8") -> str:
        return self.content.decode(charset)


FormValue = Union[str, UploadFile]
BodyData = Dict[str, Union[FormValue, List[FormValue]]]


def parse_body(request: Any, config: Optional[RequestConfig] = None) -> BodyData:
    """リクエストボディをフォームデータとして解析

    Args:
        request: ``headers`` と ``read()`` を持つリクエスト
        config: リクエスト設定

    Returns:
        BodyData: フィールド名と値の辞書。フォーム以外の Content-Type では空辞書

    Raises:
        PayloadTooLargeError: ボディが ``max_body_size`` を超える場合
        ValidationError: ボディが指定の文字コードでデコードできない場合
    """
    config = config or DEFAULT_CONFIG
    content_type = request.headers.get("content-type", "")
    mime = content_type.split(";", 1)[0].strip().lower()

    # フォーム以外はストリームを消費しない
    if mime not in (FORM_URLENCODED, MULTIPART_FORM_DATA):
        return {}

    raw = request.read()
    if config.max_body_size is not None and len(raw) > config.max_body_size:
        logger.warning(
            "ボディサイズが上限を超えています: %d > %d", len(raw), config.max_body_size
        )
        raise PayloadTooLargeError(size=len(raw), limit=config.max_body_size)

    try:
        if mime == FORM_URLENCODED:
            # パーセントエスケープも同じ文字コードでデコードする
            pairs: List[Tuple[str, FormValue]] = list(
                parse_qsl(
                    raw.decode(config.charset),
                    keep_blank_values=True,
                    encoding=config.charset,
                )
            )
        else:
            pairs = _parse_multipart(content_type, raw, config.charset)
    except UnicodeDecodeError as e:
        logger.warning("フォームボディをデコードできません (%s): %s", e.encoding, e.reason)
        raise ValidationError(
            f"Form body is not valid {e.encoding}",
            target="form",
            details={"position": e.start},
        ) from e

    return _collect(pairs, config.all_form_values)


def _parse_multipart(content_type: str, raw: bytes, charset: str) -> List[Tuple[str, FormValue]]:
    """multipart/form-data ボディをフィールドの一覧に変換"""
    header = f"Content-Type: {content_type}\r\n\r\n".encode("latin-1")
    message = BytesParser(_class=EmailMessage, policy=HTTP).parsebytes(header + raw)

    if not message.is_multipart():
        return []

    pairs: List[Tuple[str, FormValue]] = []
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if not name:
            continue

        payload = part.get_payload(decode=True) or b""
        filename = part.get_filename()
        if filename is not None:
            pairs.append(
                (
                    str(name),
                    UploadFile(
                        filename=filename,
                        content=payload,
                        content_type=part.get_content_type(),
                    ),
                )
            )
        else:
            part_charset = part.get_content_charset() or charset
            pairs.append((str(name), payload.decode(part_charset)))

    return pairs


def _collect(pairs: List[Tuple[str, FormValue]], all_values: bool) -> BodyData:
    """同名フィールドの扱いに従って辞書にまとめる"""
    data: BodyData = {}
    for name, value in pairs:
        if not all_values:
            # 後勝ち
            data[name] = value
            continue

        if name not in data:
            data[name] = value
        elif isinstance(data[name], list):
            data[name].append(value)  # type: ignore[union-attr]
        else:
            data[name] = [data[name], value]  # type: ignore[list-item]

    return data
