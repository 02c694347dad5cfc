"""
リクエスト設定

ボディ解析に関する設定と、ログ出力の切り替えを提供します。
"""

import codecs
import logging
from typing import Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class RequestConfig:
    """リクエスト設定クラス"""

    charset: str = "utf-8"
    max_body_size: Optional[int] = None
    all_form_values: bool = False

    def __post_init__(self) -> None:
        """初期化後の処理"""
        try:
            codecs.lookup(self.charset)
        except LookupError:
            raise ValueError(f"不明な文字コードです: {self.charset}")

        if self.max_body_size is not None and self.max_body_size <= 0:
            raise ValueError("max_body_size は正の整数である必要があります")


DEFAULT_CONFIG = RequestConfig()


def create_request_config(
    charset: str = "utf-8",
    max_body_size: Optional[int] = None,
    all_form_values: bool = False,
) -> RequestConfig:
    """リクエスト設定を作成するヘルパー関数"""
    return RequestConfig(
        charset=charset,
        max_body_size=max_body_size,
        all_form_values=all_form_values,
    )


def enable_debug_logging(enabled: bool = True) -> logging.Logger:
    """lambreq のデバッグログを有効化（無効化時はレベルを未設定に戻す）"""
    logger = logging.getLogger("lambreq")
    logger.setLevel(logging.DEBUG if enabled else logging.NOTSET)
    return logger
