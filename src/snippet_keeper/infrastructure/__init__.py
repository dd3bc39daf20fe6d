"""
インフラストラクチャ層

ストレージ、確認ダイアログ、リモート取得などの外部システム依存を提供します。
"""

from .key_value_store import KeyValueStore, InMemoryKeyValueStore, JsonFileKeyValueStore
from .confirmation_prompt import (
    ConfirmationPrompt,
    ConsoleConfirmationPrompt,
)
from .playlist_client import PlaylistClient, extract_error_messages

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "ConfirmationPrompt",
    "ConsoleConfirmationPrompt",
    "PlaylistClient",
    "extract_error_messages",
]
