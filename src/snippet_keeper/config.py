"""実行時設定"""

import logging
import os
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field

from .domain.models import HostCapabilities, HostContext

logger = logging.getLogger(__name__)

# context_string → (表示名, ホスト固有 API 名前空間)
KNOWN_HOSTS = {
    "excel": ("Excel", "Excel"),
    "word": ("Word", "Word"),
    "powerpoint": ("PowerPoint", "PowerPoint"),
    "onenote": ("OneNote", "OneNote"),
    "web": ("Web", None),
}


class AppConfig(BaseModel):
    """
    アプリケーション設定

    Attributes:
        storage_dir: スニペット保存ディレクトリ
        context_string: 実行コンテキスト識別子
        host_name: 表示用ホスト名
        is_addin: アドインとして動作しているか
        supported_requirement_sets: サポートされる要件セット名
        playlist_base_url: デフォルトスニペット一覧の配信元
        request_timeout: HTTP タイムアウト（秒）
    """
    storage_dir: Path = Path("snippets_data")
    context_string: str = "web"
    host_name: str = "Web"
    is_addin: bool = False
    supported_requirement_sets: List[str] = Field(default_factory=list)
    playlist_base_url: str = "http://localhost:3000"
    request_timeout: int = 30

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        環境変数から設定を読み込み

        Environment:
            SNIPPETS_STORAGE_DIR, SNIPPETS_CONTEXT, SNIPPETS_HOST_NAME,
            SNIPPETS_ADDIN ("1"/"true"), SNIPPETS_REQUIREMENT_SETS (カンマ区切り),
            SNIPPETS_PLAYLIST_BASE_URL, SNIPPETS_REQUEST_TIMEOUT
        """
        def _int_env(name: str, default: int) -> int:
            raw = os.environ.get(name)
            if not raw:
                return default
            try:
                return int(raw)
            except ValueError:
                logger.warning("Invalid integer for %s: %s", name, raw)
                return default

        context_string = os.environ.get("SNIPPETS_CONTEXT", "web").strip().lower() or "web"
        default_host_name = KNOWN_HOSTS.get(context_string, (context_string.capitalize(), None))[0]
        requirement_sets = [
            name.strip()
            for name in os.environ.get("SNIPPETS_REQUIREMENT_SETS", "").split(",")
            if name.strip()
        ]

        return cls(
            storage_dir=Path(os.environ.get("SNIPPETS_STORAGE_DIR", "snippets_data")),
            context_string=context_string,
            host_name=os.environ.get("SNIPPETS_HOST_NAME", default_host_name),
            is_addin=os.environ.get("SNIPPETS_ADDIN", "").lower() in ("1", "true", "yes"),
            supported_requirement_sets=requirement_sets,
            playlist_base_url=os.environ.get("SNIPPETS_PLAYLIST_BASE_URL", "http://localhost:3000"),
            request_timeout=_int_env("SNIPPETS_REQUEST_TIMEOUT", 30),
        )

    def host_context(self) -> HostContext:
        """設定から HostContext を構築"""
        namespace = KNOWN_HOSTS.get(self.context_string, (None, None))[1]
        capabilities = HostCapabilities(
            is_office_context=namespace is not None,
            is_addin=self.is_addin,
            context_namespace=namespace,
            supported_requirement_sets=self.supported_requirement_sets,
        )
        return HostContext(
            context_string=self.context_string,
            host_name=self.host_name,
            capabilities=capabilities,
        )
