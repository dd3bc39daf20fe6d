"""
ドメイン層

スニペットのデータモデル・名前の一意化・テンプレート・例外を提供します。
"""

from .errors import (
    SnippetValidationError,
    AbortedByUser,
    ManagerNotInitializedError,
    RemoteFetchError,
)
from .naming import SuffixOption, resolve_unique_name, strip_numeric_suffix
from .models import (
    Snippet,
    SnippetMeta,
    HostCapabilities,
    HostContext,
    GalleryItem,
    GalleryGroup,
    SnippetGallery,
)
from .templates import create_blank_snippet

__all__ = [
    "SnippetValidationError",
    "AbortedByUser",
    "ManagerNotInitializedError",
    "RemoteFetchError",
    "SuffixOption",
    "resolve_unique_name",
    "strip_numeric_suffix",
    "Snippet",
    "SnippetMeta",
    "HostCapabilities",
    "HostContext",
    "GalleryItem",
    "GalleryGroup",
    "SnippetGallery",
    "create_blank_snippet",
]
