"""
環境変数の型安全な取得・バリデーションヘルパー

Key Vaultのクラウド選択やタイムアウトなど、バックエンドの動作を決める設定値を
環境変数から取得します。クラウド選択は呼び出しごとに読み直します。
"""

import os
import logging
from typing import Optional, List

logger = logging.getLogger(__name__)


# クラウド選択用の環境変数
CLOUD_NAME_ENV = "AVP_AZ_CLOUD_NAME"
TIMEOUT_ENV = "AVP_AZ_TIMEOUT_SECONDS"

AZURE_PUBLIC_CLOUD = "azurepubliccloud"
AZURE_CHINA_CLOUD = "azurechina"

# クラウドごとのKey Vault DNSサフィックス
VAULT_DNS_SUFFIXES = {
    AZURE_PUBLIC_CLOUD: "vault.azure.net",
    AZURE_CHINA_CLOUD: "vault.azure.cn",
}

DEFAULT_TIMEOUT_SECONDS = 10


class ConfigError(ValueError):
    """設定値が不正な場合の例外"""
    pass


def get_env_int(
    name: str,
    default: int,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
) -> int:
    """
    環境変数を整数として安全に取得する。

    Args:
        name: 環境変数名
        default: デフォルト値
        min_val: 最小値（Noneで制限なし）
        max_val: 最大値（Noneで制限なし）

    Returns:
        整数値

    Raises:
        ConfigError: 値が不正な場合
    """
    value_str = os.environ.get(name)
    if value_str is None:
        return default

    try:
        value = int(value_str)
    except ValueError:
        raise ConfigError(
            f"環境変数 {name}='{value_str}' は整数ではありません"
        )

    if min_val is not None and value < min_val:
        raise ConfigError(
            f"環境変数 {name}={value} は最小値 {min_val} を下回っています"
        )

    if max_val is not None and value > max_val:
        raise ConfigError(
            f"環境変数 {name}={value} は最大値 {max_val} を超えています"
        )

    return value


def get_env_bool(name: str, default: bool = False) -> bool:
    """
    環境変数を真偽値として安全に取得する。

    Raises:
        ConfigError: 値が不正な場合
    """
    value_str = os.environ.get(name)
    if value_str is None:
        return default

    if value_str.lower() in ("true", "1", "yes", "on"):
        return True
    elif value_str.lower() in ("false", "0", "no", "off"):
        return False
    else:
        raise ConfigError(
            f"環境変数 {name}='{value_str}' は真偽値ではありません "
            f"(true/false/1/0 を指定してください)"
        )


def get_env_str(
    name: str,
    default: Optional[str] = None,
    allowed_values: Optional[List[str]] = None,
) -> Optional[str]:
    """
    環境変数を文字列として安全に取得する。

    Args:
        name: 環境変数名
        default: デフォルト値
        allowed_values: 許容される値のリスト（Noneで制限なし）

    Returns:
        文字列値

    Raises:
        ConfigError: 値が不正な場合
    """
    value = os.environ.get(name, default)

    if value is not None and allowed_values and value not in allowed_values:
        raise ConfigError(
            f"環境変数 {name}='{value}' は許容されない値です。"
            f"許容値: {allowed_values}"
        )

    return value


def get_cloud_name() -> str:
    """
    環境変数 AVP_AZ_CLOUD_NAME から対象クラウドを取得する。

    "azurechina" 以外の値（未設定・空文字を含む）はすべてパブリッククラウドとして扱います。
    キャッシュせず、呼び出しのたびに環境変数を読み直します。

    Returns:
        AZURE_CHINA_CLOUD または AZURE_PUBLIC_CLOUD
    """
    cloud = get_env_str(CLOUD_NAME_ENV, default="")
    if cloud == AZURE_CHINA_CLOUD:
        return AZURE_CHINA_CLOUD
    return AZURE_PUBLIC_CLOUD


def resolve_vault_url(kv_path: str) -> str:
    """
    Vaultパスとクラウド選択からKey VaultのエンドポイントURLを組み立てる。

    パスの検証は行いません。不正なパスは通信時にエラーになります。

    Args:
        kv_path: Vaultパス（Key Vault名）

    Returns:
        HTTPSエンドポイントURL

    Examples:
        >>> resolve_vault_url("my-vault")
        'https://my-vault.vault.azure.net'
    """
    suffix = VAULT_DNS_SUFFIXES[get_cloud_name()]
    return f"https://{kv_path}.{suffix}"


def get_timeout_seconds() -> int:
    """1回の呼び出し全体に許容する秒数を取得する（デフォルト10秒）"""
    return get_env_int(TIMEOUT_ENV, default=DEFAULT_TIMEOUT_SECONDS, min_val=1, max_val=300)
