"""
ドメイン例外定義

スニペット管理で発生するエラーを分類します。
"""

from typing import List, Optional


class SnippetValidationError(ValueError):
    """
    バリデーションエラー例外

    メタデータ欠損・名前が空など、保存・削除前の入力検証に失敗したことを表します。
    ストレージへの変更は一切行われていません。
    """


class AbortedByUser(Exception):
    """
    ユーザーによる中断

    確認ダイアログが "Yes" 以外で閉じられたことを表します。
    エラーではないため、ログ出力やエラー表示の対象にしません。
    """


class ManagerNotInitializedError(RuntimeError):
    """initialize() 前に書き込み操作が呼ばれた"""


class RemoteFetchError(Exception):
    """
    リモート取得エラー例外

    デフォルトスニペット一覧が取得できなかった理由を、
    人が読めるメッセージのリストとして保持します。
    """

    def __init__(self, messages: List[str], url: Optional[str] = None):
        """
        Args:
            messages: エラーメッセージリスト（先頭が概要）
            url: 取得に失敗した URL
        """
        super().__init__("\n".join(messages))
        self.messages = list(messages)
        self.url = url
