"""
lambreq セットアップファイル
"""

from setuptools import setup, find_packages
import os


# README を読み込み
def read_readme():
    try:
        with open("README.md", "r", encoding="utf-8") as fh:
            return fh.read()
    except FileNotFoundError:
        return "AWS Lambda 用 HTTP ハンドラーのためのリクエストファサード"


# バージョンを取得
def get_version():
    version_file = os.path.join("lambreq", "__init__.py")
    with open(version_file, "r", encoding="utf-8") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split('"')[1]
    return "0.1.0"


setup(
    name="lambreq",
    version=get_version(),
    description="AWS Lambda 用 HTTP ハンドラーのためのリクエストファサード",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.10",
    install_requires=[
        # Lambda 環境では標準ライブラリのみを使用
    ],
    extras_require={
        "fast": [
            "orjson>=3.9.0",
        ],
        "validation": [
            "pydantic>=2.0",
        ],
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.900",
            "isort>=5.0",
            "orjson>=3.9.0",
            "pydantic>=2.0",
        ],
    },
    keywords="lambda api aws serverless http request",
)
