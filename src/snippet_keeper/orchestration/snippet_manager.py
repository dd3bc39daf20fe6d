"""スニペット管理オーケストレーションサービス"""

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional, Union

from pydantic import BaseModel

from ..domain.errors import (
    AbortedByUser,
    ManagerNotInitializedError,
    RemoteFetchError,
    SnippetValidationError,
)
from ..domain.models import HostCapabilities, HostContext, Snippet, SnippetGallery
from ..domain.naming import SuffixOption
from ..domain.templates import create_blank_snippet
from ..infrastructure.confirmation_prompt import ConfirmationPrompt
from ..infrastructure.key_value_store import KeyValueStore
from ..infrastructure.playlist_client import PlaylistClient, extract_error_messages

StoreFactory = Callable[[str], KeyValueStore]


class DeleteStatus(str, Enum):
    """削除操作の結果種別"""
    DELETED = "deleted"
    ABORTED = "aborted"
    VALIDATION_FAILED = "validation_failed"


class DeleteResult(BaseModel):
    """
    削除操作の結果

    Attributes:
        status: 結果種別
        reason: VALIDATION_FAILED の理由
    """
    status: DeleteStatus
    reason: Optional[str] = None

    @property
    def deleted(self) -> bool:
        return self.status == DeleteStatus.DELETED

    @property
    def aborted(self) -> bool:
        return self.status == DeleteStatus.ABORTED

    def raise_for_status(self) -> None:
        """
        VALIDATION_FAILED の場合に例外を送出

        Raises:
            SnippetValidationError: 入力検証に失敗していた場合

        Note: ABORTED はエラーではないため例外にしない
        """
        if self.status == DeleteStatus.VALIDATION_FAILED:
            raise SnippetValidationError(self.reason or "Validation failed")


class SnippetManager:
    """
    スニペットの作成・複製・保存・削除のオーケストレーション

    Responsibilities:
    - 名前空間ごとのストアの唯一の所有者
    - add を経由した ID 割り当てと名前の一意化
    - 削除時の確認ダイアログ
    - デフォルトスニペット一覧の取得とエラー変換

    Note: 同じ名前空間に対して複数のインスタンスを同時に動かすことは
          サポートしない（呼び出し側の責務）
    """

    DELETE_CONFIRMATION_TITLE = "Delete confirmation"
    YES = "Yes"
    NO = "No"

    def __init__(
        self,
        context: HostContext,
        store_factory: StoreFactory,
        confirmation_prompt: ConfirmationPrompt,
        playlist_client: PlaylistClient
    ):
        """
        SnippetManager を初期化

        Args:
            context: 実行コンテキスト
            store_factory: 名前空間からストアを生成する関数
            confirmation_prompt: 削除確認ダイアログ
            playlist_client: デフォルトスニペット一覧の取得クライアント

        Note: 読み書きの前に initialize() を呼ぶこと
        """
        self.context = context
        self.store_factory = store_factory
        self.confirmation_prompt = confirmation_prompt
        self.playlist_client = playlist_client
        self.logger = logging.getLogger(__name__)
        self._store: Optional[KeyValueStore] = None

    @property
    def is_ready(self) -> bool:
        """initialize() 済みか"""
        return self._store is not None

    def initialize(self) -> "SnippetManager":
        """
        コンテキストの名前空間にストアを割り当てる

        Returns:
            SnippetManager: 自身（Ready 状態）

        Note: 2回目以降の呼び出しは何もしない
        """
        if self._store is None:
            self._store = self.store_factory(self.context.namespace)
            self.logger.info(f"Snippet manager bound to namespace {self.context.namespace}")
        return self

    async def new(self) -> Snippet:
        """コンテキストに応じた新規スニペットを作成して追加"""
        snippet = self.create_blank_snippet(self.context.capabilities)
        return await self.add(snippet, SuffixOption.STRIP_NUMERIC_SUFFIX_AND_INCREMENT)

    async def add(self, snippet: Snippet, suffix_option: SuffixOption) -> Snippet:
        """
        スニペットを追加

        Args:
            snippet: 追加するスニペット（ID と名前はこの中で書き換えられる）
            suffix_option: 名前衝突時のサフィックス戦略

        Returns:
            Snippet: 追加したスニペット

        Raises:
            SnippetValidationError: メタデータが存在しない場合
            ManagerNotInitializedError: initialize() 前の場合

        Invariants: ID と名前の決定はストアへの1回の書き込みより前に完了する
        """
        store = self._require_store()

        snippet.randomize_id(True, self)
        snippet.make_name_unique(suffix_option, self)
        store.add(snippet.id, snippet.to_record())

        self.logger.info(
            f"Snippet added: {snippet.meta.name}",
            extra={"snippet_id": snippet.id, "namespace": store.namespace}
        )
        return snippet

    async def duplicate(self, snippet: Union[Snippet, dict]) -> Snippet:
        """
        スニペットを複製

        Args:
            snippet: 複製元（変更されない）

        Returns:
            Snippet: 別 ID・"- Copy" 付きの名前を持つ複製
        """
        copy = Snippet.from_record(snippet)
        self._validate_meta(copy)
        copy.last_saved_hash = None
        return await self.add(copy, SuffixOption.ADD_COPY_SUFFIX)

    async def import_snippet(self, record: Union[Snippet, dict]) -> Snippet:
        """
        外部のスニペット（ギャラリー等）を自分のスニペットとして追加

        Args:
            record: 取り込むスニペットまたはレコード

        Returns:
            Snippet: 追加したスニペット
        """
        snippet = Snippet.from_record(record)
        self._validate_meta(snippet)
        snippet.last_saved_hash = None
        return await self.add(snippet, SuffixOption.STRIP_NUMERIC_SUFFIX_AND_INCREMENT)

    async def save(self, snippet: Optional[Snippet]) -> Snippet:
        """
        スニペットを保存（同じ ID のレコードは上書き）

        Args:
            snippet: 保存するスニペット

        Returns:
            Snippet: last_saved_hash を更新したスニペット

        Raises:
            SnippetValidationError: メタデータが存在しない、または名前が空の場合
            ManagerNotInitializedError: initialize() 前の場合
        """
        self._validate_meta(snippet)
        if not snippet.meta.name or not snippet.meta.name.strip():
            raise SnippetValidationError("Snippet name cannot be empty")

        store = self._require_store()

        # ID 未割り当てのスニペットのみ採番（既存 ID は維持）
        snippet.randomize_id(False, self)
        snippet.last_saved_hash = snippet.get_hash()
        store.insert(snippet.id, snippet.to_record())

        self.logger.info(
            f"Snippet saved: {snippet.meta.name}",
            extra={"snippet_id": snippet.id, "hash": snippet.last_saved_hash}
        )
        return snippet

    async def delete(self, snippet: Optional[Snippet], ask_for_confirmation: bool) -> DeleteResult:
        """
        スニペットを削除

        Args:
            snippet: 削除するスニペット
            ask_for_confirmation: True の場合は Yes/No の確認を行う

        Returns:
            DeleteResult: DELETED / ABORTED / VALIDATION_FAILED

        Note: "Yes" 以外の選択・ダイアログを閉じた場合は ABORTED（エラーではない）
        """
        try:
            self._validate_meta(snippet)
        except SnippetValidationError as e:
            return DeleteResult(status=DeleteStatus.VALIDATION_FAILED, reason=str(e))

        store = self._require_store()

        if ask_for_confirmation:
            message = f'Are you sure you want to delete the snippet "{snippet.meta.name}"?'
            if not await self._confirm(message):
                return DeleteResult(status=DeleteStatus.ABORTED)

        store.remove(snippet.id)
        self.logger.info(f"Snippet deleted: {snippet.meta.name}", extra={"snippet_id": snippet.id})
        return DeleteResult(status=DeleteStatus.DELETED)

    async def delete_all(self, ask_for_confirmation: bool) -> DeleteResult:
        """
        名前空間内の全スニペットを削除

        Args:
            ask_for_confirmation: True の場合は Yes/No の確認を行う

        Returns:
            DeleteResult: DELETED / ABORTED
        """
        store = self._require_store()

        if ask_for_confirmation:
            message = "Are you sure you want to delete *ALL* of your local snippets?"
            if not await self._confirm(message):
                return DeleteResult(status=DeleteStatus.ABORTED)

        store.clear()
        self.logger.info("All snippets deleted", extra={"namespace": store.namespace})
        return DeleteResult(status=DeleteStatus.DELETED)

    def get_local(self) -> List[Snippet]:
        """
        名前空間内の全スニペットを取得

        Returns:
            List[Snippet]: スニペットリスト（initialize() 前は常に空リスト）
        """
        if self._store is None:
            return []
        return [Snippet.from_record(record) for record in self._store.values()]

    async def get_playlist(self) -> SnippetGallery:
        """
        コンテキスト別のデフォルトスニペット一覧を取得

        Returns:
            SnippetGallery: グループ別の一覧

        Raises:
            RemoteFetchError: 取得・パースに失敗した場合（元の例外は __cause__ に保持）
        """
        try:
            return await asyncio.to_thread(self.playlist_client.fetch_playlist, self.context)
        except Exception as e:
            messages = [f"Could not retrieve default snippets for {self.context.host_name}."]
            messages.extend(extract_error_messages(e))
            self.logger.error(
                f"Failed to fetch playlist: {'; '.join(messages[1:])}",
                exc_info=True
            )
            raise RemoteFetchError(
                messages,
                url=self.playlist_client.playlist_url(self.context)
            ) from e

    async def find(self, snippet_id: str) -> Snippet:
        """
        ID でスニペットを検索

        Args:
            snippet_id: スニペット ID

        Returns:
            Snippet: 見つからない場合は meta が None の空スニペット（is_empty で判定）
        """
        store = self._require_store()
        return Snippet.from_record(store.get(snippet_id))

    @staticmethod
    def create_blank_snippet(capabilities: HostCapabilities) -> Snippet:
        """ホストの機能記述に応じた新規スニペット（未保存）を作成"""
        return create_blank_snippet(capabilities)

    async def _confirm(self, message: str) -> bool:
        """
        Yes/No の確認を行う

        Returns:
            bool: "Yes" が選ばれた場合のみ True
        """
        try:
            choice = await self.confirmation_prompt.show(
                self.DELETE_CONFIRMATION_TITLE,
                message,
                [self.YES, self.NO]
            )
        except AbortedByUser:
            self.logger.debug("Confirmation dismissed")
            return False
        return choice == self.YES

    def _require_store(self) -> KeyValueStore:
        if self._store is None:
            raise ManagerNotInitializedError(
                "SnippetManager.initialize() must be called before reading or writing snippets"
            )
        return self._store

    @staticmethod
    def _validate_meta(snippet: Optional[Snippet]) -> None:
        """
        メタデータの存在を検証

        Raises:
            SnippetValidationError: snippet または snippet.meta が None の場合
        """
        if snippet is None or snippet.meta is None:
            raise SnippetValidationError("Snippet metadata cannot be empty")
