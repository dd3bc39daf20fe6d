"""
確認ダイアログ

ラベル付きの選択肢をユーザーに提示し、選ばれたラベルを返します。
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

from ..domain.errors import AbortedByUser


class ConfirmationPrompt(ABC):
    """確認ダイアログの抽象基底クラス"""

    @abstractmethod
    async def show(self, title: str, message: str, options: Sequence[str]) -> str:
        """
        選択肢を提示

        Args:
            title: タイトル
            message: 本文
            options: 表示順の選択肢ラベル

        Returns:
            str: 選ばれたラベル

        Raises:
            AbortedByUser: 選択せずに閉じられた場合
        """
        pass


class ConsoleConfirmationPrompt(ConfirmationPrompt):
    """
    標準入出力で選択肢を提示

    ラベルの大文字小文字は区別しません。入力が閉じられた (EOF) 場合は中断扱いです。
    """

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
    ):
        self.input_func = input_func
        self.output_func = output_func

    async def show(self, title: str, message: str, options: Sequence[str]) -> str:
        self.output_func(title)
        self.output_func(message)
        prompt = f"[{'/'.join(options)}]: "
        try:
            answer = await asyncio.to_thread(self.input_func, prompt)
        except (EOFError, KeyboardInterrupt) as e:
            raise AbortedByUser(title) from e

        chosen = self._match(answer, options)
        # 選択肢に無い入力も閉じた扱い
        if chosen is None:
            raise AbortedByUser(title)
        return chosen

    @staticmethod
    def _match(answer: str, options: Sequence[str]) -> Optional[str]:
        normalized = answer.strip().lower()
        if not normalized:
            return None
        for option in options:
            if option.lower() == normalized or option.lower()[:1] == normalized:
                return option
        return None
