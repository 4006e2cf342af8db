# -*- coding: utf-8 -*-
"""
================================================================================
test_config.py - 環境変数ヘルパー・クラウド選択のテスト
================================================================================

【テスト対象】
- get_env_int / get_env_bool / get_env_str のバリデーション
- get_cloud_name / resolve_vault_url によるKey Vault URLの組み立て
- get_timeout_seconds の既定値・上書き

================================================================================
"""

import os
import pytest
from unittest.mock import patch

from avp_azure.config import (
    ConfigError,
    get_cloud_name,
    get_env_bool,
    get_env_int,
    get_env_str,
    get_timeout_seconds,
    resolve_vault_url,
)


# =============================================================================
# get_env_int テスト
# =============================================================================

class TestGetEnvInt:
    """get_env_int のテスト"""

    def test_default_when_not_set(self):
        """環境変数未設定でデフォルト値を返す"""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("TEST_INT_VAR", None)
            assert get_env_int("TEST_INT_VAR", default=42) == 42

    def test_parse_valid_int(self):
        """正常な整数値をパースする"""
        with patch.dict(os.environ, {"TEST_INT_VAR": "100"}, clear=False):
            assert get_env_int("TEST_INT_VAR", default=0) == 100

    def test_invalid_int_raises_config_error(self):
        """非整数値でConfigErrorを送出"""
        with patch.dict(os.environ, {"TEST_INT_VAR": "abc"}, clear=False):
            with pytest.raises(ConfigError, match="整数ではありません"):
                get_env_int("TEST_INT_VAR", default=0)

    def test_below_min_raises_config_error(self):
        """最小値未満でConfigErrorを送出"""
        with patch.dict(os.environ, {"TEST_INT_VAR": "0"}, clear=False):
            with pytest.raises(ConfigError, match="最小値"):
                get_env_int("TEST_INT_VAR", default=5, min_val=1)

    def test_above_max_raises_config_error(self):
        """最大値超過でConfigErrorを送出"""
        with patch.dict(os.environ, {"TEST_INT_VAR": "200"}, clear=False):
            with pytest.raises(ConfigError, match="最大値"):
                get_env_int("TEST_INT_VAR", default=5, max_val=100)


# =============================================================================
# get_env_bool / get_env_str テスト
# =============================================================================

class TestGetEnvBool:
    """get_env_bool のテスト"""

    @pytest.mark.parametrize("value", ["true", "True", "1", "yes", "on"])
    def test_truthy_values(self, value):
        """真として認識される値"""
        with patch.dict(os.environ, {"TEST_BOOL_VAR": value}, clear=False):
            assert get_env_bool("TEST_BOOL_VAR") is True

    @pytest.mark.parametrize("value", ["false", "False", "0", "no", "off"])
    def test_falsy_values(self, value):
        """偽として認識される値"""
        with patch.dict(os.environ, {"TEST_BOOL_VAR": value}, clear=False):
            assert get_env_bool("TEST_BOOL_VAR") is False

    def test_invalid_bool_raises_config_error(self):
        """不正な値でConfigErrorを送出"""
        with patch.dict(os.environ, {"TEST_BOOL_VAR": "maybe"}, clear=False):
            with pytest.raises(ConfigError, match="真偽値ではありません"):
                get_env_bool("TEST_BOOL_VAR")


class TestGetEnvStr:
    """get_env_str のテスト"""

    def test_default_when_not_set(self):
        """環境変数未設定でデフォルト値を返す"""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("TEST_STR_VAR", None)
            assert get_env_str("TEST_STR_VAR", default="default") == "default"

    def test_disallowed_value_raises_config_error(self):
        """許容値リスト外の値でConfigErrorを送出"""
        with patch.dict(os.environ, {"TEST_STR_VAR": "INVALID"}, clear=False):
            with pytest.raises(ConfigError, match="許容されない値"):
                get_env_str("TEST_STR_VAR", allowed_values=["azurechina"])


# =============================================================================
# クラウド選択・URL組み立てテスト
# =============================================================================

class TestResolveVaultUrl:
    """get_cloud_name / resolve_vault_url のテスト"""

    def test_public_cloud_when_not_set(self):
        """未設定ならパブリッククラウドのURL"""
        assert get_cloud_name() == "azurepubliccloud"
        assert resolve_vault_url("my-vault") == "https://my-vault.vault.azure.net"

    def test_china_cloud(self, monkeypatch):
        """azurechina なら vault.azure.cn"""
        monkeypatch.setenv("AVP_AZ_CLOUD_NAME", "azurechina")

        assert get_cloud_name() == "azurechina"
        assert resolve_vault_url("my-vault") == "https://my-vault.vault.azure.cn"

    @pytest.mark.parametrize("value", ["", "AzureChina", "azureusgovernment", "other"])
    def test_unrecognised_values_fall_back_to_public(self, monkeypatch, value):
        """認識しない値はすべてパブリッククラウド扱い"""
        monkeypatch.setenv("AVP_AZ_CLOUD_NAME", value)

        assert resolve_vault_url("kv") == "https://kv.vault.azure.net"

    def test_path_is_not_validated(self):
        """パスは検証せずそのまま埋め込む"""
        assert resolve_vault_url("not a/valid path") == "https://not a/valid path.vault.azure.net"

    def test_environment_is_read_on_every_call(self, monkeypatch):
        """呼び出しのたびに環境変数を読み直す"""
        first = resolve_vault_url("kv")
        monkeypatch.setenv("AVP_AZ_CLOUD_NAME", "azurechina")
        second = resolve_vault_url("kv")

        assert first != second


# =============================================================================
# タイムアウト設定テスト
# =============================================================================

class TestGetTimeoutSeconds:
    """get_timeout_seconds のテスト"""

    def test_default_is_ten_seconds(self):
        """デフォルトは10秒"""
        assert get_timeout_seconds() == 10

    def test_override(self, monkeypatch):
        """環境変数で上書きできる"""
        monkeypatch.setenv("AVP_AZ_TIMEOUT_SECONDS", "30")

        assert get_timeout_seconds() == 30

    def test_zero_raises_config_error(self, monkeypatch):
        """0秒は不正"""
        monkeypatch.setenv("AVP_AZ_TIMEOUT_SECONDS", "0")

        with pytest.raises(ConfigError):
            get_timeout_seconds()
