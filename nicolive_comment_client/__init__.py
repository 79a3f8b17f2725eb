
from nicolive_comment_client.comment_provider import CommentProvider
from nicolive_comment_client.constants import (
    AccountType,
    ChatResultStatus,
    CommentProviderEvent,
    ConnectionState,
    LiveSession,
    NicoLiveComment,
    NicoLiveCommentUser,
)

__version__ = '1.0.0'
__all__ = [
    'AccountType',
    'ChatResultStatus',
    'CommentProvider',
    'CommentProviderEvent',
    'ConnectionState',
    'LiveSession',
    'NicoLiveComment',
    'NicoLiveCommentUser',
]
