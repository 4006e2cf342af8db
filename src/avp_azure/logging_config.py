# -*- coding: utf-8 -*-
"""
=============================================================================
ログ設定モジュール (logging_config.py)
=============================================================================

バックエンド全体で使用するログ設定と、詳細出力（verbose）用のシンクを提供します。

【主な機能】
- 標準エラー出力へのログ出力（標準出力はシークレットの出力に使うため使用しない）
- ログファイルの自動ローテーション（任意）
- 構造化ログ出力（JSON形式オプション）
- 詳細出力シンク verbose_to_stderr（シークレット値を含み得るため既定では無効）

【使い方】
    from avp_azure.logging_config import setup_logging, verbose_to_stderr

    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("処理を開始します")

    verbose_to_stderr("Azure Key Vault getting secret %s from vault %s", name, url)

【環境変数】
- LOG_LEVEL: ログレベル（DEBUG/INFO/WARNING/ERROR/CRITICAL）
- LOG_FORMAT: ログフォーマット（standard/json）
- LOG_TO_FILE: ファイル出力の有効/無効（true/false、デフォルト: false）
- LOG_DIR: ログファイルの出力ディレクトリ
- AVP_VERBOSE_SENSITIVE_OUTPUT: 詳細出力の有効/無効（true/false）

=============================================================================
"""

import logging
import logging.handlers
import os
import sys
import json
import traceback
from datetime import datetime
from typing import Optional, Dict, Any
from pathlib import Path

from .config import get_env_bool


# =============================================================================
# 定数定義
# =============================================================================

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_DIR = "logs"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5

DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)
VERBOSE_FORMAT = "%(message)s"

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

VERBOSE_ENV = "AVP_VERBOSE_SENSITIVE_OUTPUT"
VERBOSE_LOGGER_NAME = "avp_azure.verbose"


# =============================================================================
# カスタムフォーマッター
# =============================================================================

class JsonFormatter(logging.Formatter):
    """
    JSON形式のログフォーマッター

    【出力例】
    {
        "timestamp": "2024-01-15 10:30:45",
        "level": "ERROR",
        "logger": "avp_azure.cli",
        "message": "シークレット取得に失敗しました",
        "function": "main",
        "line": 88
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).strftime(
                DATETIME_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
            }

        # extra パラメータで渡された属性
        reserved = logging.LogRecord("", 0, "", 0, "", (), None).__dict__
        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in reserved and not key.startswith('_')
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, ensure_ascii=False, default=str)


# =============================================================================
# ログ設定クラス
# =============================================================================

class LoggingConfig:
    """
    ログ設定を管理するクラス（シングルトン）

    ログ設定はプロセスで一度だけ行えばよいため、インスタンスを1つに限定します。
    """

    _instance: Optional['LoggingConfig'] = None
    _initialized: bool = False

    def __new__(cls) -> 'LoggingConfig':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if LoggingConfig._initialized:
            return

        self.log_level = os.environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
        self.log_dir = os.environ.get("LOG_DIR", DEFAULT_LOG_DIR)
        self.log_format = os.environ.get("LOG_FORMAT", "standard").lower()
        self.log_to_file = os.environ.get("LOG_TO_FILE", "false").lower() == "true"

        if self.log_to_file:
            Path(self.log_dir).mkdir(parents=True, exist_ok=True)

        self._configure_package_logger()
        self._configure_verbose_logger()

        LoggingConfig._initialized = True

    @classmethod
    def reset(cls) -> None:
        """設定を破棄する（主にテスト用）"""
        for name in ("avp_azure", VERBOSE_LOGGER_NAME):
            target = logging.getLogger(name)
            for handler in list(target.handlers):
                target.removeHandler(handler)
                handler.close()
        cls._instance = None
        cls._initialized = False

    def _configure_package_logger(self) -> None:
        """
        パッケージロガー（avp_azure配下すべての親）を設定する

        呼び出し元ツールのルートロガーには手を加えません。
        """
        package_logger = logging.getLogger("avp_azure")
        package_logger.handlers.clear()
        package_logger.setLevel(getattr(logging, self.log_level, logging.WARNING))

        package_logger.addHandler(self._create_console_handler())

        if self.log_to_file:
            package_logger.addHandler(self._create_file_handler())

    def _configure_verbose_logger(self) -> None:
        """
        詳細出力専用ロガーを設定する

        メッセージのみを標準エラー出力へ書き出します。有効/無効は
        verbose_to_stderr 側で判定するため、レベルは常にDEBUGです。
        """
        verbose_logger = logging.getLogger(VERBOSE_LOGGER_NAME)
        verbose_logger.handlers.clear()
        verbose_logger.setLevel(logging.DEBUG)
        verbose_logger.propagate = False

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(VERBOSE_FORMAT))
        verbose_logger.addHandler(handler)

    def _create_console_handler(self) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)

        if self.log_format == "json":
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(DETAILED_FORMAT, datefmt=DATETIME_FORMAT)

        handler.setFormatter(formatter)
        return handler

    def _create_file_handler(self) -> logging.Handler:
        """
        ファイル出力用ハンドラーを作成（ローテーション対応）

        Returns:
            設定済みのRotatingFileHandler
        """
        log_file = Path(self.log_dir) / "avp-azure.log"

        handler = logging.handlers.RotatingFileHandler(
            filename=str(log_file),
            maxBytes=DEFAULT_MAX_BYTES,
            backupCount=DEFAULT_BACKUP_COUNT,
            encoding='utf-8'
        )
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATETIME_FORMAT))

        return handler


# =============================================================================
# 公開関数
# =============================================================================

def setup_logging() -> None:
    """
    ログ設定を初期化する

    エントリーポイントの起動時に一度だけ呼び出してください。
    """
    LoggingConfig()


# 詳細出力の明示設定（Noneの場合は環境変数に従う）
_verbose_override: Optional[bool] = None


def set_verbose(enabled: Optional[bool]) -> None:
    """
    詳細出力の有効/無効を設定する

    Args:
        enabled: True/False で明示設定、None で環境変数の設定に戻す
    """
    global _verbose_override
    _verbose_override = enabled


def is_verbose() -> bool:
    """詳細出力が有効かどうか"""
    if _verbose_override is not None:
        return _verbose_override
    return get_env_bool(VERBOSE_ENV, default=False)


def verbose_to_stderr(fmt: str, *args: Any) -> None:
    """
    詳細出力が有効な場合のみ、メッセージを標準エラー出力へ書き出す

    シークレット値を含むことがあるため、既定では何も出力しません。

    Args:
        fmt: %形式のフォーマット文字列
        *args: フォーマット引数
    """
    if not is_verbose():
        return

    setup_logging()
    logging.getLogger(VERBOSE_LOGGER_NAME).debug(fmt, *args)
