
from __future__ import annotations

from typing import Any, Callable, Hashable


Listener = Callable[..., Any]
ErrorHandler = Callable[[Hashable, Exception], None]


class Disposable:
    """
    購読を解除するためのハンドル
    dispose() は何度呼び出しても問題ない
    """

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback: Callable[[], None] | None = callback

    @property
    def disposed(self) -> bool:
        return self._callback is None

    def dispose(self) -> None:
        if self._callback is None:
            return
        callback = self._callback
        self._callback = None
        callback()


class EventEmitter:
    """
    プロセス内で完結する単純な Publish / Subscribe の実装
    リスナーは emit() を呼び出したスレッド (イベントループ) 上で、登録順に同期的に呼び出される
    """


    def __init__(self, error_handler: ErrorHandler | None = None) -> None:
        """
        EventEmitter のコンストラクタ

        Args:
            error_handler (ErrorHandler | None, default=None): リスナーが例外を送出したときに呼び出される関数
                (指定されていない場合は例外をそのまま送出する)
        """

        self.error_handler = error_handler
        self.disposed = False
        self._listeners: dict[Hashable, list[Listener]] = {}
        # lockAutoEmit() で発行されたイベントの引数 (後から購読したリスナーにも即座に発行する)
        self._locked_events: dict[Hashable, tuple[Any, ...]] = {}


    def on(self, event: Hashable, listener: Listener) -> Disposable:
        """
        イベントを購読する

        Args:
            event (Hashable): 購読するイベント
            listener (Listener): イベント発行時に呼び出される関数

        Returns:
            Disposable: 購読を解除するためのハンドル
        """

        if self.disposed:
            raise RuntimeError('EventEmitter has been disposed')

        self._listeners.setdefault(event, []).append(listener)
        disposable = Disposable(lambda: self._removeListener(event, listener))

        # 既にロックされたイベントであれば、購読したリスナーにだけ即座に発行する
        if event in self._locked_events:
            self._invoke(event, listener, self._locked_events[event])

        return disposable


    def once(self, event: Hashable, listener: Listener) -> Disposable:
        """
        イベントを 1 回だけ購読する
        """

        disposable: Disposable | None = None

        def wrapper(*args: Any) -> Any:
            if disposable is not None:
                disposable.dispose()
            return listener(*args)

        disposable = self.on(event, wrapper)
        # ロックされたイベントで on() の中から既に呼び出されていた場合
        if event in self._locked_events:
            disposable.dispose()
        return disposable


    def emit(self, event: Hashable, *args: Any) -> None:
        """
        イベントを発行する

        Args:
            event (Hashable): 発行するイベント
            *args (Any): リスナーに渡す引数
        """

        if self.disposed:
            return

        # リスナーの中で購読が解除されることがあるので、コピーしてから回す
        for listener in list(self._listeners.get(event, [])):
            self._invoke(event, listener, args)


    def lockAutoEmit(self, event: Hashable, *args: Any) -> None:
        """
        イベントを発行し、以降に購読したリスナーにも同じ引数で即座に発行するようにする
        unlockAutoEmit() を呼び出すまで有効
        """

        if self.disposed:
            return

        self._locked_events[event] = args
        self.emit(event, *args)


    def unlockAutoEmit(self, event: Hashable) -> None:
        self._locked_events.pop(event, None)


    def listenerCount(self, event: Hashable) -> int:
        return len(self._listeners.get(event, []))


    def dispose(self) -> None:
        """
        すべての購読を解除し、以降のイベント発行を無視する
        """

        self._listeners.clear()
        self._locked_events.clear()
        self.disposed = True


    def _removeListener(self, event: Hashable, listener: Listener) -> None:
        listeners = self._listeners.get(event)
        if not listeners:
            return
        if listener in listeners:
            listeners.remove(listener)
        if not listeners:
            self._listeners.pop(event, None)


    def _invoke(self, event: Hashable, listener: Listener, args: tuple[Any, ...]) -> None:
        try:
            listener(*args)
        except Exception as ex:
            if self.error_handler is None:
                raise
            self.error_handler(event, ex)
