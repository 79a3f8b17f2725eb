
import asyncio
import inspect
import re
from functools import partial, wraps
from typer import Typer
from typing import Any, Callable, TypeVar

F = TypeVar('F', bound=Callable[..., Any])


def sanitize_for_xml(text: str) -> str:
    """
    XML と互換性のない制御文字を除去する
    有効な XML 制御文字 (タブ、改行、復帰) は保持する
    制御文字が入っていると lxml が ValueError を吐くので、XML に設定する前に通す
    """

    return re.sub(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]', '', text)


class AsyncTyper(Typer):
    """
    async def で定義したコマンドをそのまま登録できるようにした Typer
    Typer は非同期関数に対応していないため、コルーチン関数は asyncio.run() で包んでから登録する
    ref: https://github.com/tiangolo/typer/issues/88
    """

    @staticmethod
    def _register(decorator: Callable[[F], F], f: F) -> F:
        if inspect.iscoroutinefunction(f):

            @wraps(f)
            def runner(*args: Any, **kwargs: Any) -> Any:
                return asyncio.run(f(*args, **kwargs))

            decorator(runner)  # type: ignore
        else:
            decorator(f)
        return f

    def callback(self, *args: Any, **kwargs: Any) -> Callable[[F], F]:  # type: ignore
        return partial(self._register, super().callback(*args, **kwargs))

    def command(self, *args: Any, **kwargs: Any) -> Callable[[F], F]:  # type: ignore
        return partial(self._register, super().command(*args, **kwargs))
