"""
================================================================================
avp_azure - Azure Key Vault シークレットバックエンド
================================================================================

【概要】
Azure Key Vaultのシークレットを取得し、シークレット注入ツールが扱う
{シークレット名: 値} の辞書に整形します。

【モジュール構成】
- secrets.azure_keyvault: Azure Key Vault バックエンド
- secrets.secrets_provider: バックエンド共通インターフェースとファクトリー
- config: 環境変数ヘルパー（クラウド選択・タイムアウト）
- logging_config: ログ設定と詳細出力シンク
- error_handler: 例外からエラーレスポンスへの変換
- cli: コマンドラインエントリーポイント

【使用例】
```python
from avp_azure import get_secret_backend

backend = get_secret_backend("azurekeyvault")

# Vault内の全シークレット
secrets = backend.get_secrets("my-vault")

# 1件のみ（バージョン固定）
value = backend.get_individual_secret("my-vault", "db-password", version="abc123")
```

【環境変数】
- AVP_AZ_CLOUD_NAME: "azurechina" で中国リージョン（vault.azure.cn）を使用
- AVP_AZ_TIMEOUT_SECONDS: 1回の呼び出しの制限時間（デフォルト: 10秒）

================================================================================
"""
from .secrets import (
    AzureKeyVaultBackend,
    SecretBackend,
    SecretBackendError,
    SecretTimeoutError,
    get_secret_backend,
)

__version__ = "0.1.0"

__all__ = [
    "AzureKeyVaultBackend",
    "SecretBackend",
    "SecretBackendError",
    "SecretTimeoutError",
    "get_secret_backend",
]
