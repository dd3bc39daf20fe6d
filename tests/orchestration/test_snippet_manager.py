"""SnippetManager のユニットテスト"""

import pytest
import requests
from unittest.mock import Mock

from src.snippet_keeper.domain.errors import (
    AbortedByUser,
    ManagerNotInitializedError,
    RemoteFetchError,
    SnippetValidationError,
)
from src.snippet_keeper.domain.models import (
    HostCapabilities,
    HostContext,
    Snippet,
    SnippetGallery,
    SnippetMeta,
)
from src.snippet_keeper.domain.naming import SuffixOption
from src.snippet_keeper.domain.templates import GENERIC_SCRIPT
from src.snippet_keeper.infrastructure.key_value_store import InMemoryKeyValueStore
from src.snippet_keeper.infrastructure.playlist_client import PlaylistClient
from src.snippet_keeper.orchestration.snippet_manager import (
    DeleteResult,
    DeleteStatus,
    SnippetManager,
)


class _StubPrompt:
    """固定の選択を返す確認ダイアログ（None の場合は閉じた扱い）"""

    def __init__(self, choice):
        self.choice = choice
        self.calls = []

    async def show(self, title, message, options):
        self.calls.append((title, message, list(options)))
        if self.choice is None:
            raise AbortedByUser(title)
        return self.choice


class TestSnippetManager:
    """SnippetManager のテストケース"""

    @pytest.fixture
    def context(self):
        return HostContext(context_string="web", host_name="Web")

    @pytest.fixture
    def stores(self):
        """生成されたストアを名前空間ごとに記録"""
        return {}

    @pytest.fixture
    def store_factory(self, stores):
        def factory(namespace):
            stores[namespace] = InMemoryKeyValueStore(namespace)
            return stores[namespace]
        return factory

    @pytest.fixture
    def prompt(self):
        return _StubPrompt("Yes")

    @pytest.fixture
    def playlist_client(self):
        return Mock(spec=PlaylistClient)

    @pytest.fixture
    def manager(self, context, store_factory, prompt, playlist_client):
        return SnippetManager(
            context=context,
            store_factory=store_factory,
            confirmation_prompt=prompt,
            playlist_client=playlist_client,
        ).initialize()

    @pytest.fixture
    def store(self, manager, stores):
        return stores["web_snippets"]

    # 初期化

    def test_initialize_binds_context_namespace(self, context, store_factory, prompt, playlist_client, stores):
        """initialize() でコンテキストの名前空間にストアが割り当てられること"""
        manager = SnippetManager(context, store_factory, prompt, playlist_client)
        assert not manager.is_ready
        assert manager.get_local() == []

        assert manager.initialize() is manager
        assert manager.is_ready
        assert list(stores) == ["web_snippets"]

    def test_initialize_twice_keeps_store(self, manager, stores):
        manager.initialize()
        assert len(stores) == 1

    @pytest.mark.asyncio
    async def test_writes_before_initialize_raise(self, context, store_factory, prompt, playlist_client):
        """initialize() 前の書き込みは ManagerNotInitializedError"""
        manager = SnippetManager(context, store_factory, prompt, playlist_client)
        with pytest.raises(ManagerNotInitializedError):
            await manager.new()
        with pytest.raises(ManagerNotInitializedError):
            await manager.save(Snippet(meta=SnippetMeta(name="Foo")))

    # new / add

    @pytest.mark.asyncio
    async def test_new_from_empty_namespace(self, manager):
        """空の名前空間で new() すると1件だけ保存されること"""
        snippet = await manager.new()

        local = manager.get_local()
        assert len(local) == 1
        assert local[0].id == snippet.id
        assert local[0].meta.name == "New Snippet"
        assert local[0].script == GENERIC_SCRIPT

    @pytest.mark.asyncio
    async def test_second_new_gets_numeric_suffix(self, manager):
        """2回目の new() は最初の空き番号で名前が変わること"""
        first = await manager.new()
        second = await manager.new()

        names = [s.meta.name for s in manager.get_local()]
        assert names == ["New Snippet", "New Snippet 1"]
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_new_uses_context_capabilities(self, store_factory, prompt, playlist_client):
        """new() はコンテキストの機能記述に応じたテンプレートを使うこと"""
        context = HostContext(
            context_string="excel",
            host_name="Excel",
            capabilities=HostCapabilities(is_office_context=True, context_namespace="Excel"),
        )
        manager = SnippetManager(context, store_factory, prompt, playlist_client).initialize()
        snippet = await manager.new()
        assert snippet.script.startswith("Excel.run(")

    @pytest.mark.asyncio
    async def test_add_sequence_has_no_gaps(self, manager):
        """同名の add を繰り返すと "Foo", "Foo 1", "Foo 2" になること"""
        for _ in range(3):
            await manager.add(Snippet(meta=SnippetMeta(name="Foo")), SuffixOption.STRIP_NUMERIC_SUFFIX_AND_INCREMENT)

        names = sorted(s.meta.name for s in manager.get_local())
        assert names == ["Foo", "Foo 1", "Foo 2"]

    @pytest.mark.asyncio
    async def test_add_forces_new_id(self, manager):
        """add は既存 ID があっても新しい ID を割り当てること"""
        snippet = Snippet(meta=SnippetMeta(id="fixed", name="Foo"))
        added = await manager.add(snippet, SuffixOption.STRIP_NUMERIC_SUFFIX_AND_INCREMENT)
        assert added.id != "fixed"

    @pytest.mark.asyncio
    async def test_add_writes_once(self, manager, store):
        """ID と名前の確定後に1回だけ書き込むこと"""
        store.add = Mock(wraps=store.add)
        snippet = await manager.add(Snippet(meta=SnippetMeta(name="Foo")), SuffixOption.ADD_COPY_SUFFIX)

        store.add.assert_called_once()
        key, record = store.add.call_args.args
        assert key == snippet.id
        assert record["meta"]["name"] == "Foo - Copy"

    @pytest.mark.asyncio
    async def test_add_without_meta_fails_before_write(self, manager):
        with pytest.raises(SnippetValidationError):
            await manager.add(Snippet(meta=None), SuffixOption.STRIP_NUMERIC_SUFFIX_AND_INCREMENT)
        assert manager.get_local() == []

    # duplicate / import

    @pytest.mark.asyncio
    async def test_duplicate(self, manager):
        """複製は別 ID・別名・同一コンテンツであること"""
        source = await manager.new()
        source.script = "original();"
        await manager.save(source)

        copy = await manager.duplicate(source)

        assert copy.id != source.id
        assert copy.meta.name != source.meta.name
        assert copy.meta.name == "New Snippet - Copy"
        assert copy.script == source.script
        assert copy.libraries == source.libraries
        assert len(manager.get_local()) == 2

    @pytest.mark.asyncio
    async def test_duplicate_does_not_share_state(self, manager):
        """複製を編集しても元のスニペットは変わらないこと"""
        source = await manager.new()
        await manager.save(source)
        copy = await manager.duplicate(source)

        copy.script = "edited copy"
        copy.meta.name = "Renamed"
        await manager.save(copy)

        stored_source = await manager.find(source.id)
        assert source.script == GENERIC_SCRIPT
        assert stored_source.script == GENERIC_SCRIPT
        assert stored_source.meta.name == "New Snippet"

    @pytest.mark.asyncio
    async def test_duplicate_twice(self, manager):
        source = await manager.new()
        first = await manager.duplicate(source)
        second = await manager.duplicate(source)
        assert first.meta.name == "New Snippet - Copy"
        assert second.meta.name == "New Snippet - Copy 2"

    @pytest.mark.asyncio
    async def test_duplicate_without_meta(self, manager):
        with pytest.raises(SnippetValidationError):
            await manager.duplicate(Snippet(meta=None))

    @pytest.mark.asyncio
    async def test_import_snippet(self, manager):
        """外部レコードを取り込むと一意な名前で追加されること"""
        await manager.add(Snippet(meta=SnippetMeta(name="Basic call")), SuffixOption.STRIP_NUMERIC_SUFFIX_AND_INCREMENT)

        imported = await manager.import_snippet({"meta": {"name": "Basic call"}, "script": "x();"})

        assert imported.meta.name == "Basic call 1"
        assert imported.script == "x();"
        assert imported.is_dirty

    # save

    @pytest.mark.asyncio
    async def test_save_sets_last_saved_hash(self, manager):
        """保存後は last_saved_hash がハッシュと一致し、ストアに反映されること"""
        snippet = await manager.new()
        snippet.script = "edited();"
        assert snippet.is_dirty

        await manager.save(snippet)

        assert not snippet.is_dirty
        stored = [s for s in manager.get_local() if s.id == snippet.id]
        assert len(stored) == 1
        assert stored[0].last_saved_hash == snippet.get_hash()
        assert stored[0].script == "edited();"

    @pytest.mark.asyncio
    async def test_save_overwrites_by_id(self, manager):
        """同じ ID の保存は上書きされること"""
        snippet = await manager.new()
        snippet.script = "v2"
        await manager.save(snippet)
        snippet.script = "v3"
        await manager.save(snippet)

        local = manager.get_local()
        assert len(local) == 1
        assert local[0].script == "v3"

    @pytest.mark.asyncio
    async def test_save_keeps_id(self, manager):
        snippet = await manager.new()
        original_id = snippet.id
        await manager.save(snippet)
        assert snippet.id == original_id

    @pytest.mark.asyncio
    async def test_save_assigns_id_when_missing(self, manager):
        snippet = Snippet(meta=SnippetMeta(name="Unsaved"))
        await manager.save(snippet)
        assert snippet.id
        assert (await manager.find(snippet.id)).meta.name == "Unsaved"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("snippet", [None, Snippet(meta=None)])
    async def test_save_without_meta_fails(self, manager, store, snippet):
        """meta が無い場合は保存前に SnippetValidationError"""
        store.insert = Mock(wraps=store.insert)
        with pytest.raises(SnippetValidationError, match="metadata"):
            await manager.save(snippet)
        store.insert.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   "])
    async def test_save_with_empty_name_fails(self, manager, name):
        snippet = await manager.new()
        snippet.meta.name = name
        with pytest.raises(SnippetValidationError, match="name"):
            await manager.save(snippet)
        assert manager.get_local()[0].meta.name == "New Snippet"

    # delete

    @pytest.mark.asyncio
    async def test_delete_without_confirmation(self, manager, prompt):
        snippet = await manager.new()
        result = await manager.delete(snippet, ask_for_confirmation=False)

        assert result.status == DeleteStatus.DELETED
        assert manager.get_local() == []
        assert prompt.calls == []

    @pytest.mark.asyncio
    async def test_delete_with_yes(self, manager, prompt):
        """"Yes" の場合のみ削除すること"""
        snippet = await manager.new()
        result = await manager.delete(snippet, ask_for_confirmation=True)

        assert result.deleted
        assert manager.get_local() == []
        title, message, options = prompt.calls[0]
        assert title == "Delete confirmation"
        assert message == 'Are you sure you want to delete the snippet "New Snippet"?'
        assert options == ["Yes", "No"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("choice", ["No", "Cancel", None])
    async def test_delete_not_confirmed_is_aborted(self, manager, prompt, choice):
        """"Yes" 以外・閉じた場合は ABORTED で、スニペットは残ること"""
        prompt.choice = choice
        snippet = await manager.new()

        result = await manager.delete(snippet, ask_for_confirmation=True)

        assert result.status == DeleteStatus.ABORTED
        assert result.aborted
        result.raise_for_status()
        assert len(manager.get_local()) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("snippet", [None, Snippet(meta=None)])
    async def test_delete_without_meta(self, manager, prompt, store, snippet):
        """meta が無い場合は VALIDATION_FAILED でストアを変更しないこと"""
        store.remove = Mock(wraps=store.remove)

        result = await manager.delete(snippet, ask_for_confirmation=True)

        assert result.status == DeleteStatus.VALIDATION_FAILED
        assert result.reason == "Snippet metadata cannot be empty"
        with pytest.raises(SnippetValidationError):
            result.raise_for_status()
        assert prompt.calls == []
        store.remove.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_all_without_confirmation(self, manager):
        """確認なしの delete_all で名前空間が空になること"""
        for _ in range(3):
            await manager.new()

        result = await manager.delete_all(ask_for_confirmation=False)

        assert result.deleted
        assert manager.get_local() == []

    @pytest.mark.asyncio
    async def test_delete_all_confirmation(self, manager, prompt):
        await manager.new()
        await manager.delete_all(ask_for_confirmation=True)
        assert prompt.calls[0][1] == "Are you sure you want to delete *ALL* of your local snippets?"
        assert manager.get_local() == []

    @pytest.mark.asyncio
    async def test_delete_all_aborted(self, manager, prompt):
        prompt.choice = "No"
        await manager.new()

        result = await manager.delete_all(ask_for_confirmation=True)

        assert result.status == DeleteStatus.ABORTED
        assert len(manager.get_local()) == 1

    # find

    @pytest.mark.asyncio
    async def test_find(self, manager):
        snippet = await manager.new()
        found = await manager.find(snippet.id)
        assert found.id == snippet.id
        assert found is not snippet

    @pytest.mark.asyncio
    async def test_find_missing_returns_empty(self, manager):
        """存在しない ID でも例外にならず空スニペットを返すこと"""
        found = await manager.find("missing")
        assert found.is_empty

    # get_playlist

    @pytest.mark.asyncio
    async def test_get_playlist(self, manager, playlist_client, context):
        gallery = SnippetGallery(groups=[])
        playlist_client.fetch_playlist.return_value = gallery

        assert await manager.get_playlist() is gallery
        playlist_client.fetch_playlist.assert_called_once_with(context)

    @pytest.mark.asyncio
    async def test_get_playlist_failure(self, manager, playlist_client):
        """取得失敗はメッセージ付きの RemoteFetchError に変換されること"""
        playlist_client.fetch_playlist.side_effect = requests.ConnectionError("Connection refused")
        playlist_client.playlist_url.return_value = "http://localhost:3000/assets/snippets/web.json"

        with pytest.raises(RemoteFetchError) as exc_info:
            await manager.get_playlist()

        error = exc_info.value
        assert error.messages == [
            "Could not retrieve default snippets for Web.",
            "Connection refused",
        ]
        assert error.url == "http://localhost:3000/assets/snippets/web.json"
        assert isinstance(error.__cause__, requests.ConnectionError)

    # static

    def test_create_blank_snippet_is_not_persisted(self, manager):
        snippet = SnippetManager.create_blank_snippet(HostCapabilities())
        assert snippet.script == GENERIC_SCRIPT
        assert manager.get_local() == []


class TestDeleteResult:
    """DeleteResult のテスト"""

    def test_deleted(self):
        result = DeleteResult(status=DeleteStatus.DELETED)
        assert result.deleted
        assert not result.aborted
        result.raise_for_status()

    def test_validation_failed_raises(self):
        result = DeleteResult(status=DeleteStatus.VALIDATION_FAILED, reason="bad")
        with pytest.raises(SnippetValidationError, match="bad"):
            result.raise_for_status()
