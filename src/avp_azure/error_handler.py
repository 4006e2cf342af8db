"""
エラーハンドリング統一モジュール

バックエンドが送出した例外をエラーコード付きのレスポンスに変換します。

本番環境:
- トレースバックを非表示
- ユーザー向けメッセージのみ返却

開発環境:
- トレースバックと内部エラーメッセージも返却
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, Optional
import traceback
import uuid
import logging
import os

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    ResourceNotFoundError,
    ServiceRequestTimeoutError,
    ServiceResponseTimeoutError,
)

from .config import ConfigError
from .secrets.secrets_provider import SecretTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class ErrorResponse:
    """
    統一エラーレスポンス

    Attributes:
        error_id: エラーの一意識別子（ログ追跡用）
        error_code: エラーコード（NOT_FOUND, TIMEOUT_ERROR等）
        message: 内部用詳細エラーメッセージ
        user_message: ユーザー向けメッセージ
        timestamp: エラー発生時刻
        trace: トレースバック情報（開発環境のみ）
    """
    error_id: str
    error_code: str
    message: str
    user_message: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    trace: Optional[str] = None

    def to_dict(self, include_internal: bool = False) -> Dict[str, Any]:
        """
        辞書形式に変換します。

        Args:
            include_internal: 内部情報を含めるか（開発環境用）

        Returns:
            エラーレスポンス辞書

        Examples:
            >>> error = ErrorResponse(
            ...     error_id="ERR-001",
            ...     error_code="NOT_FOUND",
            ...     message="(SecretNotFound) A secret with (name/id) missing was not found",
            ...     user_message="指定されたシークレットが見つかりません。"
            ... )
            >>> "internal_message" in error.to_dict(include_internal=False)
            False
        """
        response = {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "message": self.user_message,
            "timestamp": self.timestamp
        }

        if include_internal:
            response["internal_message"] = self.message
            if self.trace:
                response["traceback"] = self.trace

        return response


class ErrorHandler:
    """
    エラーハンドラー

    環境に応じた適切なエラーレスポンスを生成します。
    """

    ERROR_MESSAGES = {
        "NOT_FOUND": "指定されたシークレットが見つかりません。",
        "UNAUTHORIZED": "Azureの認証に失敗しました。認証情報を確認してください。",
        "TIMEOUT_ERROR": "シークレット取得がタイムアウトしました。後で再試行してください。",
        "CONFIG_ERROR": "設定値が正しくありません。環境変数を確認してください。",
        "SECRET_ERROR": "Key Vaultからのシークレット取得に失敗しました。",
        "INTERNAL_ERROR": "内部エラーが発生しました。システム管理者に連絡してください。",
    }

    def __init__(self):
        """
        環境変数 ENVIRONMENT で本番環境（production）か開発環境かを判定します。
        """
        self.is_production = os.getenv("ENVIRONMENT", "development").lower() == "production"

    def create_error_response(
        self,
        error_code: str,
        internal_message: str,
        user_message: Optional[str] = None,
        exception: Optional[Exception] = None
    ) -> ErrorResponse:
        """
        エラーレスポンスを作成します。

        Args:
            error_code: エラーコード
            internal_message: 内部用詳細メッセージ
            user_message: ユーザー向けメッセージ（Noneの場合はデフォルトメッセージ使用）
            exception: 例外オブジェクト（トレースバック取得用）

        Returns:
            ErrorResponse オブジェクト
        """
        error_id = str(uuid.uuid4())[:8].upper()

        if user_message is None:
            user_message = self.ERROR_MESSAGES.get(
                error_code,
                "エラーが発生しました。システム管理者に連絡してください。"
            )

        trace = None
        if not self.is_production and exception:
            trace = "".join(traceback.format_exception(
                type(exception), exception, exception.__traceback__
            ))

        logger.error(
            f"エラー発生 [ID: {error_id}] [{error_code}]: {internal_message}",
            extra={"error_id": error_id, "error_code": error_code},
            exc_info=exception if not self.is_production else None
        )

        return ErrorResponse(
            error_id=error_id,
            error_code=error_code,
            message=internal_message,
            user_message=user_message,
            trace=trace
        )

    def handle_exception(
        self,
        exception: Exception,
        error_code: Optional[str] = None,
        user_message: Optional[str] = None
    ) -> ErrorResponse:
        """
        例外からエラーレスポンスを作成します。

        Args:
            exception: 例外オブジェクト
            error_code: エラーコード（Noneの場合は例外タイプから推測）
            user_message: ユーザー向けメッセージ

        Returns:
            ErrorResponse オブジェクト
        """
        if error_code is None:
            error_code = self._infer_error_code(exception)

        return self.create_error_response(
            error_code=error_code,
            internal_message=f"{type(exception).__name__}: {exception}",
            user_message=user_message,
            exception=exception
        )

    @staticmethod
    def _infer_error_code(exception: Exception) -> str:
        """例外タイプからエラーコードを推測する"""
        if isinstance(exception, ResourceNotFoundError):
            return "NOT_FOUND"
        if isinstance(exception, ClientAuthenticationError):
            return "UNAUTHORIZED"
        if isinstance(exception, (SecretTimeoutError, ServiceRequestTimeoutError,
                                  ServiceResponseTimeoutError)):
            return "TIMEOUT_ERROR"
        if isinstance(exception, ConfigError):
            return "CONFIG_ERROR"
        if isinstance(exception, AzureError):
            return "SECRET_ERROR"
        return "INTERNAL_ERROR"
