"""
シークレットバックエンド統一インターフェース

シークレット注入ツールから呼び出される共通インターフェースと、
バックエンドの生成ファクトリーを定義します。
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
import logging
import os
import time

logger = logging.getLogger(__name__)


BACKEND_TYPE_ENV = "AVP_TYPE"
AZURE_KEY_VAULT_BACKEND = "azurekeyvault"


class SecretBackendError(Exception):
    """シークレットバックエンドの基底例外"""
    pass


class SecretTimeoutError(SecretBackendError, TimeoutError):
    """呼び出し全体の制限時間を超過した場合の例外"""
    pass


class Deadline:
    """
    1回の呼び出し全体に対する制限時間

    一覧取得と個別取得のすべてをまとめて1つの制限時間で管理します。
    """

    def __init__(self, timeout: float):
        self.timeout = timeout
        self._expires_at = time.monotonic() + timeout

    def remaining(self) -> float:
        """
        残り秒数を返す

        Raises:
            SecretTimeoutError: 制限時間を超過している場合
        """
        remaining = self._expires_at - time.monotonic()
        if remaining <= 0:
            raise SecretTimeoutError(
                f"シークレット取得が制限時間 {self.timeout} 秒を超過しました"
            )
        return remaining


class SecretBackend(ABC):
    """
    シークレットバックエンドの抽象基底クラス

    シークレット注入ツールが利用する3つの操作を定義します。
    書き込み系の操作は提供しません。
    """

    @abstractmethod
    def login(self) -> None:
        """
        バックエンドへの認証を行います。

        Raises:
            Exception: 認証に失敗した場合
        """
        pass

    @abstractmethod
    def get_secrets(
        self,
        kv_path: str,
        version: str = "",
        annotations: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        Vaultパス配下のシークレットをまとめて取得します。

        Args:
            kv_path: Vaultパス
            version: 固定するバージョン（空文字で最新）
            annotations: 呼び出し元のメタデータ

        Returns:
            シークレット名から値への辞書

        Raises:
            Exception: 一覧取得に失敗した場合
        """
        pass

    @abstractmethod
    def get_individual_secret(
        self,
        kv_path: str,
        secret: str,
        version: str = "",
        annotations: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        名前を指定してシークレットを1件取得します。

        Args:
            kv_path: Vaultパス
            secret: シークレット名
            version: 固定するバージョン（空文字で最新）
            annotations: 呼び出し元のメタデータ

        Returns:
            シークレット値

        Raises:
            Exception: シークレットが存在しない、または取得に失敗した場合
        """
        pass


def get_secret_backend(
    backend_type: Optional[str] = None,
    credential: Optional[Any] = None,
    **kwargs
) -> SecretBackend:
    """
    バックエンドタイプに応じたSecretBackendインスタンスを取得します。

    Args:
        backend_type: バックエンドタイプ（現在は "azurekeyvault" のみ）
                      Noneの場合は環境変数AVP_TYPEから取得
        credential: Azure認証情報。Noneの場合はDefaultAzureCredentialを使用
        **kwargs: バックエンド固有の初期化パラメータ

    Returns:
        SecretBackendインスタンス

    Raises:
        ValueError: 不正なバックエンドタイプが指定された場合

    Examples:
        >>> backend = get_secret_backend("azurekeyvault")
        >>> backend.get_secrets("my-vault")
        {'db-password': '...'}
    """
    if backend_type is None:
        backend_type = os.getenv(BACKEND_TYPE_ENV, AZURE_KEY_VAULT_BACKEND)

    backend_type = backend_type.lower()

    logger.info(f"シークレットバックエンドを初期化: {backend_type}")

    if backend_type == AZURE_KEY_VAULT_BACKEND:
        from .azure_keyvault import AzureKeyVaultBackend, default_client_factory
        from ..config import get_timeout_seconds

        if credential is None:
            from azure.identity import DefaultAzureCredential
            credential = DefaultAzureCredential()

        kwargs.setdefault("client_factory", default_client_factory)
        kwargs.setdefault("timeout", get_timeout_seconds())
        return AzureKeyVaultBackend(credential=credential, **kwargs)

    raise ValueError(
        f"不正なシークレットバックエンドタイプ: {backend_type}。"
        f"有効な値: {AZURE_KEY_VAULT_BACKEND}"
    )


# キャッシュ用のグローバルインスタンス
_global_backend: Optional[SecretBackend] = None


def get_default_backend(force_reinitialize: bool = False) -> SecretBackend:
    """
    デフォルトのシークレットバックエンドを取得します（シングルトン）。

    キャッシュするのはバックエンドのインスタンスのみで、シークレット値はキャッシュしません。

    Args:
        force_reinitialize: 強制的に再初期化するか

    Returns:
        SecretBackendインスタンス
    """
    global _global_backend

    if _global_backend is None or force_reinitialize:
        _global_backend = get_secret_backend()

    return _global_backend
