"""デフォルトスニペット一覧の取得クライアント"""

import logging
from typing import List

import requests
from pydantic import ValidationError

from ..domain.models import HostContext, SnippetGallery


def extract_error_messages(error: Exception) -> List[str]:
    """
    例外から人が読めるメッセージを抽出

    Args:
        error: 取得処理で発生した例外

    Returns:
        List[str]: メッセージリスト（空にはならない）
    """
    if isinstance(error, requests.HTTPError) and error.response is not None:
        return [f"HTTP {error.response.status_code}: {error.response.reason}"]
    if isinstance(error, ValidationError):
        return [
            f"{'.'.join(str(loc) for loc in detail['loc'])}: {detail['msg']}"
            for detail in error.errors()
        ]
    message = str(error)
    return [message] if message else [type(error).__name__]


class PlaylistClient:
    """
    コンテキスト別のデフォルトスニペット一覧を HTTP で取得

    Responsibilities:
    - "<base_url>/assets/snippets/<context>.json" の組み立て
    - レスポンス JSON の SnippetGallery への変換

    Note: リトライは行わない。失敗時は例外をそのまま送出する
    """

    PLAYLIST_PATH = "/assets/snippets/"

    # HTTP リクエストヘッダー
    HEADERS = {
        "User-Agent": "SnippetKeeper/1.0",
        "Accept": "application/json",
    }

    # リクエストタイムアウト（秒）
    TIMEOUT = 30

    def __init__(self, base_url: str, timeout: int = TIMEOUT):
        """
        Args:
            base_url: 配信元のオリジン (例: "https://example.com")
            timeout: リクエストタイムアウト（秒）
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def playlist_url(self, context: HostContext) -> str:
        return f"{self.base_url}{self.PLAYLIST_PATH}{context.context_string}.json"

    def fetch_playlist(self, context: HostContext) -> SnippetGallery:
        """
        デフォルトスニペット一覧を取得

        Args:
            context: 実行コンテキスト

        Returns:
            SnippetGallery: グループ別の一覧

        Raises:
            requests.RequestException: HTTP エラー・接続失敗・タイムアウト
            ValueError: JSON パース失敗、またはスキーマ不一致 (pydantic.ValidationError)
        """
        url = self.playlist_url(context)
        self.logger.debug(f"Fetching playlist: {url}")

        response = requests.get(url, headers=self.HEADERS, timeout=self.timeout)
        response.raise_for_status()

        return SnippetGallery.model_validate(response.json())
