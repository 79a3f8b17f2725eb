"""
Custom exceptions for NicoLive comment client.
"""

from __future__ import annotations

from nicolive_comment_client.constants import ChatResultStatus


class NicoLiveCommentError(Exception):
    """Base exception for all NicoLive comment client errors."""
    pass


class DisposedError(NicoLiveCommentError):
    """Raised when a disposed CommentProvider is used."""
    pass


class ConnectionTimeoutError(NicoLiveCommentError):
    """Raised when the comment server does not respond to the connect frame in time."""
    pass


class SocketError(NicoLiveCommentError):
    """Raised when the TCP connection to the comment server cannot be opened."""

    def __init__(self, message: str, original: OSError | None = None):
        super().__init__(message)
        self.original = original


class NotConnectedError(NicoLiveCommentError):
    """Raised when posting without a connection to the comment server."""
    pass


class ConnectionClosedError(NicoLiveCommentError):
    """Raised on pending posts when the connection is closed before the post result arrives."""
    pass


class EmptyCommentError(NicoLiveCommentError):
    """Raised when trying to post an empty comment."""
    pass


class PostKeyError(NicoLiveCommentError):
    """Raised when the post key cannot be fetched."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PostTimeoutError(NicoLiveCommentError):
    """Raised when the post result does not arrive in time."""
    pass


class PostError(NicoLiveCommentError):
    """
    Raised when the comment server rejects a posted comment.

    `code` is the raw status of the chat_result element and `result` is the
    classified status (None for statuses unknown to this client).
    """

    MESSAGES: dict[ChatResultStatus, str] = {
        ChatResultStatus.CONTINUOUS_POST: 'Can not post continuous the same comment.',
        ChatResultStatus.THREAD_ID_ERROR: 'Failed to post comment. (reason: thread id error)',
        ChatResultStatus.TICKET_ERROR: 'Failed to post comment. (reason: ticket error)',
        ChatResultStatus.DIFFERENT_POSTKEY: 'Failed to post comment. (reason: postkey is different)',
        ChatResultStatus.LOCKED: 'Your posting has been locked.',
    }

    def __init__(self, code: int):
        try:
            result: ChatResultStatus | None = ChatResultStatus(code)
        except ValueError:
            result = None
        self.code = code
        self.result = result
        if result is not None and result in self.MESSAGES:
            message = self.MESSAGES[result]
        else:
            message = f'Failed to post comment. (status: {code})'
        super().__init__(message)
