"""
01. クイックスタート - lambreq の基本的な使い方

Lambda プロキシイベントから Request を作成し、各アクセサを使うサンプルです。
"""

import json
from dataclasses import dataclass

from lambreq import APIError, Request, validator
from lambreq.exceptions import create_error_response


@dataclass
class CreateUser:
    name: str
    age: int


def lambda_handler(event, context):
    req = Request.from_event(event)

    try:
        if req.method == "POST":
            user = validator(req, "json", CreateUser)
            body = {"created": user.name, "age": user.age}
        else:
            body = {
                "user_id": req.param("user_id"),
                "page": req.query("page"),
                "tags": req.queries("tag"),
                "theme": req.cookie("theme"),
                "agent": req.header("User-Agent"),
            }
        status_code = 200
    except APIError as e:
        body = create_error_response(e, getattr(context, "aws_request_id", None))
        status_code = e.status_code

    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, ensure_ascii=False),
    }


if __name__ == "__main__":
    # ローカルテスト
    print("=== lambreq クイックスタート テスト ===")

    # テスト 1: パス・クエリ・Cookie・ヘッダー
    event = {
        "httpMethod": "GET",
        "path": "/users/42",
        "pathParameters": {"user_id": "42"},
        "multiValueQueryStringParameters": {"page": ["2"], "tag": ["a", "b"]},
        "headers": {"Host": "api.example.com", "Cookie": "theme=dark", "User-Agent": "curl"},
        "body": None,
    }
    print(f"GET /users/42: {lambda_handler(event, None)['body']}")

    # テスト 2: JSON ボディのバリデーション
    event = {
        "httpMethod": "POST",
        "path": "/users",
        "headers": {"Host": "api.example.com", "Content-Type": "application/json"},
        "body": json.dumps({"name": "Alice", "age": "30"}),
    }
    print(f"POST /users: {lambda_handler(event, None)['body']}")

    # テスト 3: バリデーションエラー
    event["body"] = json.dumps({"name": "Alice"})
    print(f"POST /users (invalid): {lambda_handler(event, None)['body']}")
