"""
データモデル定義

このモジュールはスニペット管理のドメイン層のデータモデルを定義します:
- SnippetMeta / Snippet: 永続化・ハッシュ計算の対象となるスニペット
- HostCapabilities / HostContext: 実行コンテキスト（ホストアプリ）の記述
- SnippetGallery: リモートから取得するデフォルトスニペット一覧
"""

import hashlib
import json
import uuid
from typing import Any, List, Optional, Union, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import SnippetValidationError
from .naming import SuffixOption, resolve_unique_name

if TYPE_CHECKING:
    from ..orchestration.snippet_manager import SnippetManager


DEFAULT_SNIPPET_NAME = "New Snippet"
NAMESPACE_SUFFIX = "_snippets"


class SnippetMeta(BaseModel):
    """スニペットのメタデータ（ID と表示名）"""

    id: Optional[str] = Field(default=None, description="名前空間内で一意な ID")
    name: str = Field(default=DEFAULT_SNIPPET_NAME, description="表示名")


class Snippet(BaseModel):
    """
    スニペット

    編集層からはインスタンスを直接書き換えて使用します。
    ストレージへの書き込みは SnippetManager のみが行います。
    """

    model_config = ConfigDict(validate_assignment=True)

    meta: Optional[SnippetMeta] = Field(default_factory=SnippetMeta, description="メタデータ")
    script: str = Field(default="", description="スクリプト本体")
    style: str = Field(default="", description="CSS")
    template: str = Field(default="", description="HTML テンプレート")
    libraries: str = Field(default="", description="ライブラリ参照（1行1件）")
    last_saved_hash: Optional[str] = Field(default=None, description="最終保存時のハッシュ")

    @field_validator("script", "style", "template", "libraries", mode="before")
    @classmethod
    def normalize_content(cls, v: Any) -> Any:
        """未指定 (None) のコンテンツは空文字列に揃える"""
        return "" if v is None else v

    @classmethod
    def from_record(cls, record: Union[None, dict, "Snippet"]) -> "Snippet":
        """
        保存済みレコードまたは既存スニペットから Snippet を構築

        Args:
            record: 辞書、Snippet、または None

        Returns:
            Snippet: 新しいインスタンス。record が None の場合は meta が None の空スニペット

        Note:
            - 部分的な辞書はデフォルト値にマージされる
            - Snippet を渡した場合はディープコピーを返す（可変状態を共有しない）
        """
        if record is None:
            return cls(meta=None)
        if isinstance(record, Snippet):
            return record.model_copy(deep=True)
        return cls.model_validate(record)

    @property
    def id(self) -> Optional[str]:
        """meta.id のショートカット"""
        return self.meta.id if self.meta is not None else None

    @property
    def is_empty(self) -> bool:
        """メタデータを持たない（永続化できない）スニペットか"""
        return self.meta is None

    @property
    def is_dirty(self) -> bool:
        """最終保存以降に内容が変更されているか"""
        return self.get_hash() != self.last_saved_hash

    def get_hash(self) -> str:
        """
        意味のあるフィールドからハッシュを計算

        Returns:
            str: SHA-256 の 16 進文字列

        Note:
            - 対象: name, script, style, template, libraries
            - id と last_saved_hash は対象外
        """
        payload = {
            "name": self.meta.name if self.meta is not None else None,
            "script": self.script,
            "style": self.style,
            "template": self.template,
            "libraries": self.libraries,
        }
        encoded = json.dumps(payload, sort_keys=True, ensure_ascii=False)
        return hashlib.sha256(encoded.encode("utf-8")).hexdigest()

    def randomize_id(self, force: bool, manager: "SnippetManager") -> None:
        """
        一意な ID を割り当てる

        Args:
            force: True の場合は既存 ID があっても再割り当て
            manager: 名前空間内の既存 ID を参照するためのマネージャー

        Raises:
            SnippetValidationError: メタデータが存在しない場合
        """
        if self.meta is None:
            raise SnippetValidationError("Snippet metadata cannot be empty")
        if self.meta.id and not force:
            return

        taken = {snippet.id for snippet in manager.get_local()}
        if self.meta.id:
            taken.add(self.meta.id)

        new_id = uuid.uuid4().hex
        while new_id in taken:
            new_id = uuid.uuid4().hex
        self.meta.id = new_id

    def make_name_unique(self, suffix_option: SuffixOption, manager: "SnippetManager") -> None:
        """
        名前空間内で重複しない名前に変更

        Args:
            suffix_option: 重複時のサフィックス戦略
            manager: 既存の名前を参照するためのマネージャー

        Raises:
            SnippetValidationError: メタデータが存在しない場合
        """
        if self.meta is None:
            raise SnippetValidationError("Snippet metadata cannot be empty")

        existing_names = [
            snippet.meta.name
            for snippet in manager.get_local()
            if snippet.meta is not None and snippet.id != self.id
        ]
        self.meta.name = resolve_unique_name(self.meta.name, existing_names, suffix_option)

    def to_record(self) -> dict:
        """ストレージ保存用の辞書に変換"""
        return self.model_dump(mode="json")


class HostCapabilities(BaseModel):
    """
    ホストアプリの機能記述

    新規スニペットのテンプレート選択に使用します。
    実行時のホスト検出は呼び出し側の責務です。
    """

    is_office_context: bool = Field(default=False, description="Office ホスト上で動作しているか")
    is_addin: bool = Field(default=False, description="アドインとして動作しているか")
    context_namespace: Optional[str] = Field(
        default=None,
        description="ホスト固有 API の名前空間 ('Excel', 'Word' など)"
    )
    supported_requirement_sets: List[str] = Field(
        default_factory=list,
        description="サポートされる要件セット名 ('ExcelApi' など)"
    )

    def is_set_supported(self, name: str) -> bool:
        return name in self.supported_requirement_sets


class HostContext(BaseModel):
    """
    実行コンテキスト

    ストレージ名前空間とプレイリスト URL の導出元になります。
    """

    context_string: str = Field(..., description="コンテキスト識別子 ('excel', 'word', 'web')")
    host_name: str = Field(..., description="表示用ホスト名 ('Excel' など)")
    capabilities: HostCapabilities = Field(default_factory=HostCapabilities)

    @field_validator("context_string")
    @classmethod
    def validate_context_string(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("context_string は空にできません")
        return v.strip()

    @property
    def namespace(self) -> str:
        """ストレージ名前空間"""
        return self.context_string + NAMESPACE_SUFFIX


class GalleryItem(BaseModel):
    """デフォルトスニペット一覧の1項目"""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    gist_id: str = Field(..., alias="gistId", description="外部コンテンツ参照 (gist ID)")


class GalleryGroup(BaseModel):
    """名前付きの項目グループ"""

    name: str
    items: List[GalleryItem] = Field(default_factory=list)


class SnippetGallery(BaseModel):
    """コンテキスト別のデフォルトスニペット一覧"""

    groups: List[GalleryGroup] = Field(default_factory=list)
