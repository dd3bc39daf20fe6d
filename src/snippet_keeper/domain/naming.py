"""
名前の一意化ロジック

既存の名前集合と衝突しない表示名を計算する純粋関数を提供します。
"""

import re
from enum import Enum
from typing import Iterable

COPY_MARKER = "Copy"

_NUMERIC_SUFFIX = re.compile(r"^(?P<base>.*?)\s+\d+$")


class SuffixOption(str, Enum):
    """名前衝突時のサフィックス戦略"""
    STRIP_NUMERIC_SUFFIX_AND_INCREMENT = "strip_numeric_suffix_and_increment"
    ADD_COPY_SUFFIX = "add_copy_suffix"


def strip_numeric_suffix(name: str) -> str:
    """
    末尾の数値サフィックスを除去

    Args:
        name: 対象の名前 (例: "Snippet 3")

    Returns:
        str: サフィックス除去後の名前 (例: "Snippet")。数値のみの名前はそのまま
    """
    match = _NUMERIC_SUFFIX.match(name)
    if match and match.group("base"):
        return match.group("base")
    return name


def resolve_unique_name(
    candidate: str,
    existing_names: Iterable[str],
    suffix_option: SuffixOption
) -> str:
    """
    既存の名前と衝突しない名前を計算

    Args:
        candidate: 希望する名前
        existing_names: 同じ名前空間にある既存の名前
        suffix_option: サフィックス戦略

    Returns:
        str: 一意な名前

    Note:
        - STRIP_NUMERIC_SUFFIX_AND_INCREMENT: 衝突しなければそのまま。
          衝突時は末尾の数値を除去して "<base> 1", "<base> 2", ... を順に試す
        - ADD_COPY_SUFFIX: 常に "<name> - Copy" を付与し、衝突時は
          "<name> - Copy 2", "<name> - Copy 3", ... を順に試す
        - 試行回数は既存件数 + 1 回以内で必ず終了する
    """
    existing = set(existing_names)

    if suffix_option == SuffixOption.ADD_COPY_SUFFIX:
        base = f"{candidate} - {COPY_MARKER}"
        if base not in existing:
            return base
        for i in range(2, len(existing) + 3):
            name = f"{base} {i}"
            if name not in existing:
                return name
    else:
        if candidate not in existing:
            return candidate
        base = strip_numeric_suffix(candidate)
        for i in range(1, len(existing) + 2):
            name = f"{base} {i}"
            if name not in existing:
                return name

    # 鳩の巣原理によりここには到達しない
    raise AssertionError("unreachable: no free name within probe bound")
