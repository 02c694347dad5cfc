"""
構造化エラーハンドリング

リクエストファサードが送出する例外クラスと、エラーレスポンス用のヘルパーを提供します。
"""

from typing import Dict, Any, Optional, List
from dataclasses import dataclass


@dataclass
class APIError(Exception):
    """API エラーの基底クラス"""

    message: str
    status_code: int = 500
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        """初期化後の処理"""
        if self.error_code is None:
            self.error_code = f"ERR_{self.status_code}"

        if self.details is None:
            self.details = {}

        # Exception の message を設定
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """辞書形式に変換"""
        result: Dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
            "status_code": self.status_code,
        }

        if self.details:
            result["details"] = self.details

        return result


class ValidationError(APIError):
    """バリデーションエラー"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        target: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "VALIDATION_ERROR",
    ):
        error_details = details or {}
        if field:
            error_details["field"] = field
        if value is not None:
            error_details["value"] = value
        if target:
            error_details["target"] = target

        super().__init__(
            message=message, status_code=400, error_code=error_code, details=error_details
        )


class MalformedJSONError(ValidationError):
    """JSON ボディの解析エラー"""

    def __init__(self, message: str = "Malformed JSON in request body", position: Any = None):
        details: Dict[str, Any] = {}
        if position is not None:
            details["position"] = position

        super().__init__(
            message=message, target="json", details=details, error_code="MALFORMED_JSON"
        )


class InvalidRequestError(APIError):
    """リクエスト構築時の引数エラー"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message, status_code=400, error_code="INVALID_REQUEST", details=details
        )


# ストリーム状態エラーはプラットフォームの TypeError としても捕捉できるようにする
class BodyAlreadyUsedError(APIError, TypeError):
    """消費済みボディの再読み込みエラー"""

    def __init__(self, message: str = "Body has already been consumed"):
        super().__init__(message=message, status_code=400, error_code="BODY_ALREADY_USED")


class RequestCloneError(APIError, TypeError):
    """リクエスト複製エラー"""

    def __init__(
        self,
        message: str = "Request body is already used and cannot be cloned",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message, status_code=500, error_code="CLONE_FAILED", details=details
        )


class PayloadTooLargeError(APIError):
    """ボディサイズ超過エラー"""

    def __init__(
        self,
        message: str = "Request body too large",
        size: Optional[int] = None,
        limit: Optional[int] = None,
    ):
        error_details: Dict[str, Any] = {}
        if size is not None:
            error_details["size"] = size
        if limit is not None:
            error_details["limit"] = limit

        super().__init__(
            message=message,
            status_code=413,
            error_code="PAYLOAD_TOO_LARGE",
            details=error_details,
        )


# 便利な関数
def create_error_response(error: APIError, request_id: Optional[str] = None) -> Dict[str, Any]:
    """エラーレスポンスを作成"""
    response = error.to_dict()

    if request_id:
        response["request_id"] = request_id

    return response


def format_validation_errors(errors: List[ValidationError]) -> ValidationError:
    """複数のバリデーションエラーをまとめる"""
    if len(errors) == 1:
        return errors[0]

    error_details = {"errors": [err.to_dict() for err in errors], "count": len(errors)}

    return ValidationError(
        message=f"Multiple validation errors ({len(errors)} errors)", details=error_details
    )
