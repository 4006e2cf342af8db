"""
シークレットバックエンドモジュール

Azure Key Vaultからシークレットを取得するバックエンドを提供します。
"""

from .secrets_provider import (
    SecretBackend,
    SecretBackendError,
    SecretTimeoutError,
    get_secret_backend,
    get_default_backend,
)
from .azure_keyvault import AzureKeyVaultBackend, SecretsClient, default_client_factory

__all__ = [
    "SecretBackend",
    "SecretBackendError",
    "SecretTimeoutError",
    "get_secret_backend",
    "get_default_backend",
    "AzureKeyVaultBackend",
    "SecretsClient",
    "default_client_factory",
]
