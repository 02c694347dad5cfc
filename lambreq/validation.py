"""
バリデーション機能

リクエストの各部分（JSON・フォーム・クエリなど）を取り出して検証し、
結果を ``Request.valid()`` に格納します。
"""

import inspect
import logging
from dataclasses import MISSING, fields, is_dataclass
from typing import Any, Callable, Dict, List, Type, Union, cast, get_args, get_origin, get_type_hints

from .exceptions import APIError, ValidationError, format_validation_errors
from .json_handler import JSONHandler
from .request import Request

logger = logging.getLogger(__name__)

# バリデーション最適化用キャッシュ
_FIELD_INFO_CACHE: Dict[Type, Dict[str, Any]] = {}
_TYPE_HINTS_CACHE: Dict[Type, Dict[str, Type]] = {}

VALIDATION_TARGETS = ("json", "form", "query", "queries", "param", "header", "cookie")

Model = Union[Type, Callable[[Any], Any]]


def validate_and_convert(data: Dict[str, Any], model_class: Type) -> Any:
    """辞書データをデータクラスに変換・バリデーション"""
    if not is_dataclass(model_class):
        raise TypeError(f"{model_class.__name__} はデータクラスである必要があります")
    if not isinstance(data, dict):
        raise ValidationError(
            f"{model_class.__name__} にはオブジェクトが必要ですが {type(data).__name__} を受け取りました"
        )

    if model_class not in _FIELD_INFO_CACHE:
        _FIELD_INFO_CACHE[model_class] = {f.name: f for f in fields(model_class)}
    field_info = _FIELD_INFO_CACHE[model_class]

    if model_class not in _TYPE_HINTS_CACHE:
        _TYPE_HINTS_CACHE[model_class] = get_type_hints(model_class)
    type_hints = _TYPE_HINTS_CACHE[model_class]

    converted: Dict[str, Any] = {}
    for name, field_obj in field_info.items():
        if name in data:
            try:
                converted[name] = _convert_value(data[name], type_hints.get(name, str))
            except ValueError as e:
                raise ValidationError(str(e), field=name, value=data[name]) from e
        elif field_obj.default is not MISSING:
            converted[name] = field_obj.default
        elif field_obj.default_factory is not MISSING:
            converted[name] = field_obj.default_factory()
        else:
            raise ValidationError(f"必須フィールド '{name}' が不足しています", field=name)

    return model_class(**converted)


def _convert_value(value: Any, target_type: Type) -> Any:
    """値を指定された型に変換"""
    if value is None:
        return value

    if target_type is Any:
        return value
    if target_type == str:
        return str(value)
    if target_type == bool:
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes", "on")
        return bool(value)
    if target_type in (int, float):
        try:
            return target_type(value)
        except (TypeError, ValueError):
            raise ValueError(f"'{value}' を {target_type.__name__} に変換できません")

    origin = get_origin(target_type)
    if origin is Union:
        # Optional[T] のみ対応
        args = [arg for arg in get_args(target_type) if arg is not type(None)]
        return _convert_value(value, args[0]) if len(args) == 1 else value

    if target_type == list or origin is list:
        # クエリやフォームの単一値もリストとして受け付ける
        items = value if isinstance(value, list) else [value]
        args = get_args(target_type)
        if not args:
            return list(items)
        return [_convert_value(item, cast(type, args[0])) for item in items]

    if is_dataclass(target_type):
        return validate_and_convert(value, cast(type, target_type))

    return value


def _is_pydantic_model(model: Any) -> bool:
    """Pydantic v2 のモデルかどうかをチェック"""
    return inspect.isclass(model) and hasattr(model, "model_validate")


def get_target_value(request: Request, target: str) -> Any:
    """検証対象の値をリクエストから取り出す"""
    if target == "json":
        content_type = request.header("content-type") or ""
        if not JSONHandler.is_json_content_type(content_type):
            raise ValidationError(
                f"Invalid HTTP header: Content-Type={content_type}",
                field="content-type",
                target=target,
            )
        return request.json()
    if target == "form":
        return request.parse_body()
    if target == "query":
        return request.query()
    if target == "queries":
        return request.queries()
    if target == "param":
        return request.param()
    if target == "header":
        return request.header()
    if target == "cookie":
        return request.cookie()

    raise ValueError(
        f"不明なバリデーション対象です: {target}（{', '.join(VALIDATION_TARGETS)} のいずれか）"
    )


def validator(request: Request, target: str, model: Model) -> Any:
    """リクエストの一部を検証して ``valid()`` に格納

    Args:
        request: 対象のリクエスト
        target: 検証対象（json / form / query / queries / param / header / cookie）
        model: データクラス、Pydantic モデル、または値を受け取る関数

    Returns:
        Any: 検証済みデータ

    Raises:
        ValidationError: 検証に失敗した場合
    """
    value = get_target_value(request, target)

    try:
        if is_dataclass(model) and inspect.isclass(model):
            result = validate_and_convert(value, model)
        elif _is_pydantic_model(model):
            result = cast(Any, model).model_validate(value)
        else:
            result = model(value)
    except ValidationError as e:
        cast(Dict[str, Any], e.details).setdefault("target", target)
        raise
    except APIError:
        raise
    except (TypeError, ValueError) as e:
        # pydantic.ValidationError も ValueError のサブクラス
        logger.debug("バリデーションに失敗しました (%s): %s", target, e)
        raise ValidationError(f"{target} のバリデーションに失敗しました: {e}", target=target) from e

    return request.valid(result)


def validate_many(request: Request, rules: Dict[str, Model]) -> Dict[str, Any]:
    """複数の対象をまとめて検証し、対象名をキーとした辞書を ``valid()`` に格納"""
    results: Dict[str, Any] = {}
    errors: List[ValidationError] = []
    for target, model in rules.items():
        try:
            results[target] = validator(request, target, model)
        except ValidationError as e:
            errors.append(e)

    if errors:
        raise format_validation_errors(errors)

    return request.valid(results)
