"""
キーバリューストア

名前空間ごとに分離された文字列キーのマップを永続化します。
新しい保存先を追加する場合は KeyValueStore を継承して実装します。
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional


class KeyValueStore(ABC):
    """
    名前空間付きキーバリューストアの抽象基底クラス

    ローカルストアであり、操作は失敗しない前提です。
    同じ名前空間を複数のインスタンスから同時に操作することは想定していません。
    """

    def __init__(self, namespace: str):
        """
        Args:
            namespace: 名前空間 (例: "excel_snippets")
        """
        self.namespace = namespace

    @abstractmethod
    def get(self, key: str) -> Optional[dict]:
        """キーに対応するレコードを取得（存在しない場合は None）"""
        pass

    @abstractmethod
    def insert(self, key: str, record: dict) -> dict:
        """レコードを書き込み（既存レコードは上書き）"""
        pass

    def add(self, key: str, record: dict) -> dict:
        """レコードを追加（存在確認は行わない）"""
        return self.insert(key, record)

    @abstractmethod
    def remove(self, key: str) -> None:
        """レコードを削除（存在しない場合は何もしない）"""
        pass

    @abstractmethod
    def clear(self) -> None:
        """名前空間内の全レコードを削除"""
        pass

    @abstractmethod
    def values(self) -> List[dict]:
        """全レコードを挿入順で取得"""
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """プロセス内の辞書に保持するストア（テスト・一時利用向け）"""

    def __init__(self, namespace: str):
        super().__init__(namespace)
        self._data: Dict[str, dict] = {}

    def get(self, key: str) -> Optional[dict]:
        return self._data.get(key)

    def insert(self, key: str, record: dict) -> dict:
        self._data[key] = record
        return record

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def values(self) -> List[dict]:
        return list(self._data.values())


class JsonFileKeyValueStore(KeyValueStore):
    """
    JSON ファイル永続化ストア

    名前空間ごとに "<namespace>.json" を作成し、キーとレコードの
    対応を1つの JSON オブジェクトとして保存します。
    """

    def __init__(self, namespace: str, storage_dir: Optional[Path] = None):
        """
        Args:
            namespace: 名前空間
            storage_dir: 保存ディレクトリ。None の場合は "snippets_data" を使用。
        """
        super().__init__(namespace)
        self.storage_dir = storage_dir or Path("snippets_data")
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger(__name__)

    @property
    def storage_file(self) -> Path:
        """名前空間のファイルパス"""
        return self.storage_dir / f"{self.namespace}.json"

    def get(self, key: str) -> Optional[dict]:
        return self._load().get(key)

    def insert(self, key: str, record: dict) -> dict:
        data = self._load()
        data[key] = record
        self._dump(data)
        return record

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)

    def clear(self) -> None:
        self._dump({})
        self.logger.debug(f"Cleared namespace {self.namespace}")

    def values(self) -> List[dict]:
        return list(self._load().values())

    def _load(self) -> Dict[str, dict]:
        """
        ファイルを読み込み

        Returns:
            Dict[str, dict]: キーとレコードの対応（ファイルが無い場合は空）

        Raises:
            json.JSONDecodeError: JSON パースに失敗した場合
        """
        if not self.storage_file.exists():
            return {}

        with open(self.storage_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def _dump(self, data: Dict[str, dict]) -> None:
        """
        ファイルに書き込み

        Note:
            - ensure_ascii=False で日本語をそのまま保存
            - indent=2 で人間が読みやすい形式に整形
        """
        with open(self.storage_file, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
