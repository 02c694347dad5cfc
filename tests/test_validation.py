"""
バリデーション機能のテスト

lambreq.validation モジュールの各機能をテストします。
"""

import json
from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from lambreq import Request, ValidationError, validate_and_convert, validate_many, validator
from lambreq.validation import _convert_value


# テスト用データクラス定義
@dataclass
class User:
    name: str
    age: int
    active: bool = True
    tags: List[str] = field(default_factory=list)


@dataclass
class Address:
    street: str
    city: str


@dataclass
class UserWithAddress:
    name: str
    address: Address
    nickname: Optional[str] = None


@dataclass
class SearchQuery:
    q: str
    page: int = 1


@dataclass
class UserPath:
    user_id: int


def create_json_request(data, content_type="application/json"):
    """JSON ボディを持つリクエストを作成"""
    return Request(
        "https://example.com/users",
        method="POST",
        headers={"Content-Type": content_type},
        body=json.dumps(data),
    )


class TestValidateAndConvert:
    """validate_and_convert 関数のテスト"""

    def test_simple_conversion(self):
        """基本的な変換"""
        result = validate_and_convert({"name": "Alice", "age": "30", "active": "false"}, User)

        assert result == User(name="Alice", age=30, active=False)

    def test_defaults(self):
        """デフォルト値とデフォルトファクトリ"""
        result = validate_and_convert({"name": "Bob", "age": 20}, User)

        assert result.active is True
        assert result.tags == []

    def test_single_value_as_list(self):
        """単一値をリストとして受け付ける"""
        result = validate_and_convert({"name": "Carol", "age": 1, "tags": "admin"}, User)

        assert result.tags == ["admin"]

    def test_nested_dataclass(self):
        """ネストしたデータクラス"""
        data = {"name": "Dan", "address": {"street": "1-2-3", "city": "Tokyo"}}
        result = validate_and_convert(data, UserWithAddress)

        assert result.address == Address(street="1-2-3", city="Tokyo")
        assert result.nickname is None

    def test_missing_required_field(self):
        """必須フィールド不足"""
        with pytest.raises(ValidationError) as exc_info:
            validate_and_convert({"name": "Eve"}, User)

        assert exc_info.value.details["field"] == "age"

    def test_invalid_type(self):
        """変換できない値"""
        with pytest.raises(ValidationError) as exc_info:
            validate_and_convert({"name": "Frank", "age": "abc"}, User)

        assert exc_info.value.details["field"] == "age"
        assert exc_info.value.details["value"] == "abc"

    def test_not_a_dict(self):
        """辞書以外のデータ"""
        with pytest.raises(ValidationError):
            validate_and_convert(["not", "a", "dict"], User)

    def test_not_a_dataclass(self):
        """データクラス以外のモデル"""
        with pytest.raises(TypeError):
            validate_and_convert({}, dict)

    def test_convert_value(self):
        """値の型変換"""
        assert _convert_value("1.5", float) == 1.5
        assert _convert_value("yes", bool) is True
        assert _convert_value(None, int) is None
        assert _convert_value("3", Optional[int]) == 3
        assert _convert_value(["1", "2"], List[int]) == [1, 2]


class TestValidator:
    """validator のテスト"""

    def test_json_dataclass(self):
        """JSON ボディをデータクラスで検証"""
        req = create_json_request({"name": "Alice", "age": 30})
        result = validator(req, "json", User)

        assert result == User(name="Alice", age=30)
        assert req.valid() is result

    def test_json_requires_json_content_type(self):
        """JSON 以外の Content-Type は拒否する"""
        req = create_json_request({"name": "Alice", "age": 30}, content_type="text/plain")

        with pytest.raises(ValidationError) as exc_info:
            validator(req, "json", User)

        assert exc_info.value.details["target"] == "json"
        assert req.body_used is False

    def test_json_suffix_content_type(self):
        """+json の Content-Type も受け付ける"""
        req = create_json_request({"name": "A", "age": 1}, "application/vnd.api+json; charset=utf-8")

        assert validator(req, "json", User).name == "A"

    def test_query(self):
        """クエリを検証"""
        req = Request("https://example.com/search?q=lambda&page=2")

        assert validator(req, "query", SearchQuery) == SearchQuery(q="lambda", page=2)

    def test_param(self):
        """パスパラメータを検証"""
        req = Request("https://example.com/users/42")
        req.param_data = {"user_id": "42"}

        assert validator(req, "param", UserPath) == UserPath(user_id=42)

    def test_form(self):
        """フォームを検証"""
        req = Request(
            "https://example.com/users",
            method="POST",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            body="name=Bob&age=25&tags=a",
        )

        assert validator(req, "form", User) == User(name="Bob", age=25, tags=["a"])

    def test_failure_carries_target(self):
        """検証エラーには対象が含まれる"""
        req = create_json_request({"name": "Alice", "age": "old"})

        with pytest.raises(ValidationError) as exc_info:
            validator(req, "json", User)

        assert exc_info.value.details["target"] == "json"
        assert exc_info.value.details["field"] == "age"
        assert req.valid() == {}

    def test_callable_model(self):
        """関数による検証"""
        req = Request("https://example.com/", headers={"X-Api-Key": "secret"})

        assert validator(req, "header", lambda headers: headers["x-api-key"]) == "secret"
        assert req.valid() == "secret"

    def test_callable_model_value_error(self):
        """関数が ValueError を送出した場合"""
        req = Request("https://example.com/", headers={"Cookie": "session=abc"})

        def check(cookies):
            raise ValueError("invalid session")

        with pytest.raises(ValidationError) as exc_info:
            validator(req, "cookie", check)

        assert exc_info.value.details["target"] == "cookie"
        assert "invalid session" in exc_info.value.message

    def test_unknown_target(self):
        """不明な対象"""
        req = Request("https://example.com/")

        with pytest.raises(ValueError):
            validator(req, "body", User)

    def test_pydantic_model(self):
        """Pydantic モデルによる検証"""
        pydantic = pytest.importorskip("pydantic")

        class PydanticUser(pydantic.BaseModel):
            name: str
            age: Optional[int] = None

        req = create_json_request({"name": "Alice", "age": 30})
        result = validator(req, "json", PydanticUser)

        assert isinstance(result, PydanticUser)
        assert result.age == 30
        assert req.valid() is result

    def test_pydantic_model_failure(self):
        """Pydantic のエラーは ValidationError に変換される"""
        pydantic = pytest.importorskip("pydantic")

        class PydanticUser(pydantic.BaseModel):
            name: str
            age: int

        req = create_json_request({"name": "Alice", "age": "not a number"})

        with pytest.raises(ValidationError) as exc_info:
            validator(req, "json", PydanticUser)

        assert exc_info.value.status_code == 400


class TestValidateMany:
    """validate_many のテスト"""

    def test_multiple_targets(self):
        """複数の対象をまとめて検証"""
        req = Request("https://example.com/users/7?q=x")
        req.param_data = {"user_id": "7"}

        result = validate_many(req, {"param": UserPath, "query": SearchQuery})

        assert result == {"param": UserPath(user_id=7), "query": SearchQuery(q="x")}
        assert req.valid() is result

    def test_errors_are_combined(self):
        """複数のエラーはまとめて送出される"""
        req = Request("https://example.com/users/x")
        req.param_data = {"user_id": "x"}

        with pytest.raises(ValidationError) as exc_info:
            validate_many(req, {"param": UserPath, "query": SearchQuery})

        assert exc_info.value.details["count"] == 2
