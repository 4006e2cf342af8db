"""
Azure Key Vault シークレットバックエンド実装

Azure Key Vaultからシークレットを取得し、シークレット注入ツール向けに
{シークレット名: 値} の辞書へ整形します。

認証・TLS・リトライ・ページングの通信仕様はすべてAzure SDKに任せ、
このモジュールは一覧取得と個別取得の呼び出し順序だけを担当します。
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Protocol
import logging

from azure.core.credentials import TokenCredential
from azure.core.exceptions import ServiceRequestTimeoutError, ServiceResponseTimeoutError
from azure.core.paging import ItemPaged
from azure.keyvault.secrets import KeyVaultSecret, SecretClient, SecretProperties

from ..config import DEFAULT_TIMEOUT_SECONDS, resolve_vault_url
from ..logging_config import verbose_to_stderr
from .secrets_provider import Deadline, SecretBackend

logger = logging.getLogger(__name__)


class SecretsClient(Protocol):
    """
    シークレットクライアントの最小インターフェース

    SecretClientのうちバックエンドが使う2つの操作のみを定義します。
    テストではこのインターフェースを満たすダブルに差し替えます。
    """

    def list_properties_of_secrets(self, **kwargs: Any) -> ItemPaged[SecretProperties]:
        ...

    def get_secret(self, name: str, version: Optional[str] = None, **kwargs: Any) -> KeyVaultSecret:
        ...


ClientFactory = Callable[[str, TokenCredential, Optional[Dict[str, Any]]], SecretsClient]


def default_client_factory(
    vault_url: str,
    credential: TokenCredential,
    options: Optional[Dict[str, Any]] = None
) -> SecretsClient:
    """
    Azure SDKのSecretClientを生成する。

    Args:
        vault_url: Key VaultのURL（例: https://my-vault.vault.azure.net）
        credential: Azure認証情報（DefaultAzureCredentialなど）
        options: SecretClientへ渡す追加オプション

    Returns:
        SecretClientインスタンス
    """
    return SecretClient(vault_url=vault_url, credential=credential, **(options or {}))


def _verbose_optional_version(fmt: str, version: str, *args: Any) -> None:
    """バージョン指定がある場合のみ末尾に " at version ..." を付けて詳細出力する"""
    if not version:
        verbose_to_stderr(fmt, *args)
    else:
        verbose_to_stderr(fmt + " at version %s", *args, version)


@dataclass(frozen=True)
class AzureKeyVaultBackend(SecretBackend):
    """
    Azure Key Vault シークレットバックエンド

    生成後は変更されないため、1つのインスタンスを複数の呼び出し元で共有できます。

    Attributes:
        credential: Azure認証情報（中身は参照しない）
        client_factory: (vault_url, credential, options) からクライアントを生成する関数
        timeout: 1回の呼び出し全体の制限時間（秒）
    """
    credential: Optional[TokenCredential]
    client_factory: ClientFactory = default_client_factory
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def login(self) -> None:
        """
        何もしません。

        認証はSDKがクライアント生成後の最初のリクエストでトークンを取得する際に行われます。
        """
        return None

    def get_secrets(
        self,
        kv_path: str,
        version: str = "",
        annotations: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        Vault内の有効なシークレットをすべて取得します。

        一覧取得で得たシークレットのうち無効なものを除外し、1件ずつ値を取得します。

        - バージョン指定なし、または一覧のバージョンが指定と一致する場合:
          既定（最新）バージョンを取得し、取得エラーは呼び出し全体のエラーになります
        - 一覧のバージョンが指定と異なる場合:
          指定バージョンで取得を試み、取得エラーのシークレットは結果から除外します

        Args:
            kv_path: Vaultパス（Key Vault名）
            version: 固定するバージョン（空文字で最新）
            annotations: 未使用

        Returns:
            シークレット名から値への辞書

        Raises:
            azure.core.exceptions.AzureError: 一覧取得、または既定バージョンの取得に失敗した場合
            SecretTimeoutError: 制限時間を超過した場合
        """
        vault_url = resolve_vault_url(kv_path)
        deadline = Deadline(self.timeout)

        _verbose_optional_version(
            "Azure Key Vault list all secrets from vault %s", version, vault_url
        )

        client = self.client_factory(vault_url, self.credential, None)

        data: Dict[str, Any] = {}

        # ページごとに残り時間を確認し、その時点の残り時間で次ページを要求する
        continuation_token = None
        while True:
            pages = client.list_properties_of_secrets(
                timeout=deadline.remaining()
            ).by_page(continuation_token=continuation_token)
            page = next(pages, None)
            if page is None:
                break

            self._collect_page(client, page, version, vault_url, deadline, data)

            continuation_token = pages.continuation_token
            if continuation_token is None:
                break

        logger.debug(f"Key Vaultから{len(data)}個のシークレットを取得しました: {vault_url}")
        return data

    def _collect_page(
        self,
        client: SecretsClient,
        page: Iterable[SecretProperties],
        version: str,
        vault_url: str,
        deadline: Deadline,
        data: Dict[str, Any]
    ) -> None:
        """一覧の1ページ分のシークレット値を data に格納する"""
        for properties in page:
            if not properties.enabled:
                continue

            name = properties.name
            _verbose_optional_version(
                "Azure Key Vault getting secret %s from vault %s", version, name, vault_url
            )

            if not version or properties.version == version:
                secret = client.get_secret(name, None, timeout=deadline.remaining())
                verbose_to_stderr("Azure Key Vault get secret response %s", secret)
                data[name] = secret.value
                continue

            timeout = deadline.remaining()
            try:
                secret = client.get_secret(name, version, timeout=timeout)
            except (ServiceRequestTimeoutError, ServiceResponseTimeoutError):
                raise
            except Exception as e:
                verbose_to_stderr("Azure Key Vault get versioned secret not found %s", e)
                continue

            verbose_to_stderr("Azure Key Vault get versioned secret response %s", secret)
            data[name] = secret.value

    def get_individual_secret(
        self,
        kv_path: str,
        secret: str,
        version: str = "",
        annotations: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        名前を指定してシークレットを1件取得します。

        一覧取得は行わず、名前（とバージョン）で直接取得します。

        Args:
            kv_path: Vaultパス（Key Vault名）
            secret: シークレット名
            version: 固定するバージョン（空文字で最新）
            annotations: 未使用

        Returns:
            シークレット値

        Raises:
            azure.core.exceptions.ResourceNotFoundError: シークレットが存在しない場合
            azure.core.exceptions.AzureError: 取得に失敗した場合

        Examples:
            >>> backend = AzureKeyVaultBackend(DefaultAzureCredential())
            >>> backend.get_individual_secret("my-vault", "db-password")
            's3cr3t'
        """
        deadline = Deadline(self.timeout)

        _verbose_optional_version(
            "Azure Key Vault getting individual secret %s from vault %s", version, secret, kv_path
        )

        vault_url = resolve_vault_url(kv_path)
        client = self.client_factory(vault_url, self.credential, None)

        data = client.get_secret(secret, version or None, timeout=deadline.remaining())

        verbose_to_stderr("Azure Key Vault get individual secret response %s", data)

        return data.value
