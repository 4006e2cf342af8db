# -*- coding: utf-8 -*-
"""
================================================================================
conftest.py - pytest共通フィクスチャ
================================================================================

【概要】
全テストで共有するフィクスチャとテストダブルを定義します。

【フィクスチャ一覧】
- fake_client: 3件のシークレット（simple / second / disabled）を持つクライアント
- make_backend: 任意のクライアントを返すバックエンドを生成する関数
- clean_environment: 環境変数・詳細出力・ログ設定をテストごとに初期化（自動適用）

================================================================================
"""

import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import pytest
from azure.core.exceptions import ResourceNotFoundError
from azure.core.paging import ItemPaged

# srcディレクトリをパスに追加
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_src_path = os.path.join(_project_root, "src")
if _src_path not in sys.path:
    sys.path.insert(0, _src_path)

# .envファイルを読み込み（統合テスト用）
from dotenv import load_dotenv
_env_path = os.path.join(_project_root, ".env")
if os.path.exists(_env_path):
    load_dotenv(_env_path)

from avp_azure.logging_config import LoggingConfig, set_verbose
from avp_azure.secrets.azure_keyvault import AzureKeyVaultBackend


# =============================================================================
# テストダブル
# =============================================================================

@dataclass
class FakeSecretProperties:
    """SecretPropertiesの代替（一覧取得の1件）"""
    name: str
    version: Optional[str]
    enabled: Optional[bool] = True


@dataclass
class FakeSecret:
    """KeyVaultSecretの代替（個別取得の結果）"""
    name: str
    version: Optional[str]
    value: str


# 既定の一覧: すべてv2として一覧に現れる
DEFAULT_LISTING = [
    FakeSecretProperties("simple", "v2", True),
    FakeSecretProperties("second", "v2", True),
    FakeSecretProperties("disabled", "v2", False),
]

# (name, version) -> 値。version=None は既定（最新）バージョン
DEFAULT_VALUES = {
    ("simple", None): "a_value_v1",
    ("simple", "v1"): "a_value_v1",
    ("simple", "v2"): "a_value_v2",
    ("second", None): "a_second_value_v2",
    ("second", "v2"): "a_second_value_v2",
}


@dataclass
class FakeSecretsClient:
    """
    SecretsClientインターフェースを満たすテストダブル

    一覧はazure-coreのItemPagedで返すため、実SDKと同じページング動作になります。

    Attributes:
        pages: 一覧のページ（ページごとのプロパティのリスト）
        values: (name, version) から値への辞書
        list_error: 一覧のページ取得時に送出する例外
        get_calls: get_secretの呼び出し記録 (name, version, kwargs)
        list_calls: list_properties_of_secretsの呼び出し記録 (kwargs)
        fetched_pages: 実際に取得されたページ番号
    """
    pages: List[List[FakeSecretProperties]] = field(default_factory=lambda: [list(DEFAULT_LISTING)])
    values: Dict[Tuple[str, Optional[str]], str] = field(default_factory=lambda: dict(DEFAULT_VALUES))
    list_error: Optional[Exception] = None
    get_calls: List[Tuple[str, Optional[str], Dict[str, Any]]] = field(default_factory=list)
    list_calls: List[Dict[str, Any]] = field(default_factory=list)
    fetched_pages: List[int] = field(default_factory=list)

    def list_properties_of_secrets(self, **kwargs):
        self.list_calls.append(kwargs)

        def get_next(continuation_token):
            if self.list_error is not None:
                raise self.list_error
            index = int(continuation_token or 0)
            self.fetched_pages.append(index)
            return index

        def extract_data(index):
            next_token = str(index + 1) if index + 1 < len(self.pages) else None
            return next_token, iter(self.pages[index])

        return ItemPaged(get_next, extract_data)

    def get_secret(self, name, version=None, **kwargs):
        self.get_calls.append((name, version, kwargs))
        key = (name, version)
        if key not in self.values:
            raise ResourceNotFoundError(message="secret not found")
        return FakeSecret(name=name, version=version, value=self.values[key])


# =============================================================================
# フィクスチャ
# =============================================================================

@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """各テストで環境変数・詳細出力・ログ設定を初期化"""
    for key in ("AVP_AZ_CLOUD_NAME", "AVP_AZ_TIMEOUT_SECONDS", "AVP_TYPE",
                "AVP_VERBOSE_SENSITIVE_OUTPUT", "ENVIRONMENT", "LOG_FORMAT", "LOG_TO_FILE",
                "LOG_DIR", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    set_verbose(None)
    LoggingConfig.reset()
    yield
    set_verbose(None)
    LoggingConfig.reset()


@pytest.fixture
def fake_client():
    """既定の3件を持つクライアント"""
    return FakeSecretsClient()


@pytest.fixture
def make_backend():
    """
    クライアントを差し替えたバックエンドを生成する関数

    (バックエンド, ファクトリー呼び出し記録) を返します。記録は (vault_url, credential, options) のリストです。
    """
    def _make(client, timeout=10):
        calls = []

        def factory(vault_url, credential, options):
            calls.append((vault_url, credential, options))
            return client

        backend = AzureKeyVaultBackend(credential=None, client_factory=factory, timeout=timeout)
        return backend, calls

    return _make


# =============================================================================
# 統合テスト設定
# =============================================================================

def pytest_addoption(parser):
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires Azure Key Vault access)"
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)
