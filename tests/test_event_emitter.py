"""
Unit tests for the in-process event bus.
"""

import pytest

from nicolive_comment_client.event_emitter import EventEmitter


class TestEventEmitter:

    def test_listeners_called_in_registration_order(self):
        emitter = EventEmitter()
        calls: list[str] = []
        emitter.on('event', lambda value: calls.append(f'first:{value}'))
        emitter.on('event', lambda value: calls.append(f'second:{value}'))

        emitter.emit('event', 1)

        assert calls == ['first:1', 'second:1']

    def test_dispose_unsubscribes(self):
        emitter = EventEmitter()
        calls: list[int] = []
        disposable = emitter.on('event', calls.append)

        emitter.emit('event', 1)
        disposable.dispose()
        disposable.dispose()
        emitter.emit('event', 2)

        assert calls == [1]
        assert disposable.disposed is True
        assert emitter.listenerCount('event') == 0

    def test_once(self):
        emitter = EventEmitter()
        calls: list[int] = []
        emitter.once('event', calls.append)

        emitter.emit('event', 1)
        emitter.emit('event', 2)

        assert calls == [1]
        assert emitter.listenerCount('event') == 0

    def test_lock_auto_emit_replays_to_late_listeners(self):
        emitter = EventEmitter()
        early: list[list[int]] = []
        late: list[list[int]] = []
        emitter.on('first', early.append)

        emitter.lockAutoEmit('first', [1, 2])
        emitter.on('first', late.append)

        assert early == [[1, 2]]
        assert late == [[1, 2]]

    def test_once_with_locked_event(self):
        emitter = EventEmitter()
        calls: list[int] = []
        emitter.lockAutoEmit('first', 1)

        emitter.once('first', calls.append)
        emitter.emit('first', 2)

        assert calls == [1]

    def test_unlock_auto_emit(self):
        emitter = EventEmitter()
        calls: list[int] = []
        emitter.lockAutoEmit('first', 1)
        emitter.unlockAutoEmit('first')

        emitter.on('first', calls.append)

        assert calls == []

    def test_listener_error_goes_to_error_handler(self):
        errors: list[tuple[str, Exception]] = []
        emitter = EventEmitter(error_handler=lambda event, error: errors.append((event, error)))
        calls: list[int] = []

        def broken(value: int) -> None:
            raise RuntimeError('broken listener')

        emitter.on('event', broken)
        emitter.on('event', calls.append)
        emitter.emit('event', 1)

        assert calls == [1]
        assert errors[0][0] == 'event'
        assert isinstance(errors[0][1], RuntimeError)

    def test_listener_error_propagates_without_handler(self):
        emitter = EventEmitter()

        def broken() -> None:
            raise RuntimeError('broken listener')

        emitter.on('event', broken)
        with pytest.raises(RuntimeError):
            emitter.emit('event')

    def test_disposed_emitter(self):
        emitter = EventEmitter()
        calls: list[int] = []
        emitter.on('event', calls.append)

        emitter.dispose()
        emitter.emit('event', 1)

        assert calls == []
        with pytest.raises(RuntimeError):
            emitter.on('event', calls.append)
