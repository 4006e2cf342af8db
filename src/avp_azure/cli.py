#!/usr/bin/env python3
"""
コマンドラインエントリーポイント

シークレット注入ツールやシェルからバックエンドの3つの操作を呼び出します。
結果は標準出力へ、ログとエラーは標準エラー出力へ書き出します。

【使用例】
    avp-azure login
    avp-azure get-secrets my-vault
    avp-azure get-secrets my-vault --version 0123abcd
    avp-azure get-secret my-vault db-password
    avp-azure --verbose-sensitive-output get-secret my-vault db-password
"""

import argparse
import logging
import json
import sys
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from .error_handler import ErrorHandler
from .logging_config import set_verbose, setup_logging
from .secrets.secrets_provider import SecretBackend, get_secret_backend

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="avp-azure",
        description="Azure Key Vault シークレット取得ツール",
    )
    parser.add_argument(
        "--verbose-sensitive-output",
        action="store_true",
        help="詳細出力を有効にする（シークレット値を含む場合があります）",
    )
    parser.add_argument(
        "--backend",
        default=None,
        help="バックエンドタイプ（デフォルト: 環境変数AVP_TYPE または azurekeyvault）",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("login", help="バックエンドへログイン（Azureでは何もしない）")

    get_secrets = subparsers.add_parser("get-secrets", help="Vault内の全シークレットをJSONで出力")
    get_secrets.add_argument("vault", help="Vaultパス（Key Vault名）")
    get_secrets.add_argument("--version", default="", help="固定するバージョン")

    get_secret = subparsers.add_parser("get-secret", help="シークレットを1件出力")
    get_secret.add_argument("vault", help="Vaultパス（Key Vault名）")
    get_secret.add_argument("name", help="シークレット名")
    get_secret.add_argument("--version", default="", help="固定するバージョン")

    return parser


def run(args: argparse.Namespace, backend: SecretBackend) -> None:
    """解析済み引数に応じてバックエンドの操作を実行し、結果を標準出力へ書き出す"""
    if args.command == "login":
        backend.login()
    elif args.command == "get-secrets":
        data = backend.get_secrets(args.vault, args.version, None)
        print(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True))
    elif args.command == "get-secret":
        value = backend.get_individual_secret(args.vault, args.name, args.version, None)
        print(value)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    setup_logging()

    args = build_parser().parse_args(argv)

    if args.verbose_sensitive_output:
        set_verbose(True)

    logger.info(f"コマンドを実行: {args.command}")

    handler = ErrorHandler()
    try:
        backend = get_secret_backend(args.backend)
        run(args, backend)
    except Exception as e:
        error = handler.handle_exception(e)
        print(
            json.dumps(error.to_dict(include_internal=not handler.is_production), ensure_ascii=False),
            file=sys.stderr,
        )
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
