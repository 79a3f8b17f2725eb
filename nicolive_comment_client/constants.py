from __future__ import annotations

import lxml.etree as ET
import re
from datetime import datetime
from enum import Enum, IntEnum
from pydantic import BaseModel, ConfigDict, Field
from typing import Any


class ConnectionState(Enum):
    """
    コメントサーバーとの接続状態
    """
    DISCONNECTED = 'Disconnected'
    CONNECTING = 'Connecting'
    CONNECTED = 'Connected'


class CommentProviderEvent(str, Enum):
    """
    CommentProvider が発行するイベントの種類
    """
    # コメントサーバーから最初の thread 要素を受信した (接続ごとに 1 回のみ)
    CONNECT = 'did-connect'
    # ソケットから生のデータを受信した
    RECEIVE_DATA = 'did-receive-data'
    # コメントを受信した
    RECEIVE_COMMENT = 'did-receive-comment'
    # 接続直後の最初のレスポンスを処理し終えた (接続ごとに 1 回のみ)
    PROCESS_FIRST_RESPONSE = 'did-process-first-response'
    # コメント投稿結果 (chat_result) を受信した
    RECEIVE_POST_RESULT = 'did-receive-post-result'
    # ソケットでエラーが発生した
    ERROR = 'did-error'
    # コメントサーバーとの接続が閉じられた
    CLOSE_CONNECTION = 'did-close-connection'
    # 放送が終了した
    END_LIVE = 'did-end-live'


class AccountType(IntEnum):
    """
    コメント投稿者のアカウント種別 (chat 要素の premium 属性の値)
    """
    GENERAL = 0
    PREMIUM = 1
    DISTRIBUTOR = 3
    ADMIN = 6


class ChatResultStatus(IntEnum):
    """
    コメント投稿結果 (chat_result 要素の status 属性の値)
    """
    SUCCESS = 0
    CONTINUOUS_POST = 1
    THREAD_ID_ERROR = 2
    TICKET_ERROR = 3
    DIFFERENT_POSTKEY = 4
    LOCKED = 5

    @classmethod
    def _missing_(cls, value: object) -> ChatResultStatus | None:
        # ポストキーの不一致は 8 でも返ってくることがある
        if value == 8:
            return cls.DIFFERENT_POSTKEY
        return None


# 運営コメントの投稿者として使われるシステムユーザーの ID
SYSTEM_USER_ID = 900000000


def _toInt(value: str | None) -> int:
    # 属性がない・数値として解釈できない場合は 0 とみなす
    try:
        return int(value) if value is not None else 0
    except ValueError:
        return 0


class LiveSession(BaseModel):
    """
    コメントサーバーへの接続に必要な番組の情報
    CommentProvider はこのインスタンスへの参照を保持する (コピーはしない) ため、
    呼び出し側でスレッド ID を更新すると次回のコメント投稿から反映される
    """
    # 生放送の番組 ID (ex: lv345479473)
    nicolive_program_id: str
    # コメントサーバーのアドレス
    addr: str
    # コメントサーバーのポート
    port: int
    # コメントサーバー内のスレッド ID (放送中に変わることがある)
    thread: str
    # 視聴者のユーザー ID
    user_id: int
    # 視聴者がプレミアム会員かどうか
    is_premium: bool = False
    # ログインセッションの Cookie (ex: {'user_session': 'user_session_XXXXXXXX'})
    cookies: dict[str, str] = {}

    def refreshThread(self, thread: str) -> None:
        """
        スレッド ID を更新する

        Args:
            thread (str): 新しいスレッド ID
        """

        self.thread = thread


class PostCredentials(BaseModel):
    """
    コメント投稿に必要な認証情報
    ticket は接続ごとに 1 回、post_key はコメント投稿のたびに取得し直す
    """
    # 接続時に thread 要素で発行されるチケット
    ticket: str | None = None
    # コメント投稿直前に API から取得する使い捨てのポストキー
    post_key: str | None = None
    # コメント投稿時点での LiveSession のスレッド ID
    thread_id: str | None = None


class NicoLiveCommentUser(BaseModel):
    """
    コメントを投稿したユーザーの情報
    """
    model_config = ConfigDict(frozen=True)

    # ユーザー ID (匿名コメントの場合は数字ではない文字列になる)
    id: int | str
    # このユーザーの NG スコア
    score: int = 0
    # アカウント種別 (0: 一般, 1: プレミアム, 3: 配信者, 6: 運営 / 未知の値は int のまま保持する)
    account_type: AccountType | int = Field(default=AccountType.GENERAL, union_mode='left_to_right')
    # プレミアム会員かどうか
    is_premium: bool = False
    # 匿名コメントかどうか
    is_anonymous: bool = False


class NicoLiveComment(BaseModel):
    """
    コメントサーバーから受信した chat 要素を取り回しやすくしたもの
    """
    model_config = ConfigDict(frozen=True)

    # コメントサーバー内のスレッド ID
    thread_id: str
    # コメント番号 (コメ番) / chat 要素に no 属性がなければ 0
    no: int = 0
    # 放送開始時刻から起算したコメントの再生位置 (1/100 秒単位)
    vpos: int = 0
    # コメント投稿日時
    date: datetime
    # コメント投稿日時の UNIX タイムスタンプ (ミリ秒単位)
    timestamp: int
    # 投稿元の地域情報 (ex: "ja-jp")
    locale: str | None = None
    # コメント投稿時に指定されたコマンド (184, red naka big など)
    command: str = ''
    # コメント内容
    content: str
    # 自分で投稿したコメントかどうか
    is_my_post: bool = False
    # 投稿者の情報
    user: NicoLiveCommentUser

    def __str__(self) -> str:
        return (
            f'[{self.date.strftime("%Y/%m/%d %H:%M:%S")}][No:{self.no}] [white]{self.content}[/white]\n'
            f'[grey70]User: {self.user.id} | Command: {self.command}[/grey70]'
        )

    @classmethod
    def fromRawXML(cls, xml: str | bytes | Any, logged_in_user_id: int | None = None) -> NicoLiveComment:
        """
        コメントサーバーから受信した chat 要素から NicoLiveComment を生成する
        下記のような形式の chat 要素 (1 要素) を渡す
        <chat thread="##" vpos="##" date="##" date_usec="##" user_id="##" premium="#" locale="**">コメント内容</chat>

        Args:
            xml (str | bytes | lxml.etree._Element): chat 要素の XML 文字列、またはパース済みの chat 要素
            logged_in_user_id (int | None, default=None): 現在ログイン中のユーザーの ID

        Returns:
            NicoLiveComment: NicoLiveComment

        Raises:
            ValueError: chat 要素ではない XML が渡された場合
        """

        if isinstance(xml, (str, bytes)):
            element = ET.fromstring(xml)
        else:
            element = xml
        if element.tag != 'chat':
            raise ValueError(f'Not a chat element: <{element.tag}>')

        # コメント本文は山括弧だけが二重にエスケープされて配信されてくるので、&gt; と &lt; だけを元に戻す
        content = (element.text or '').replace('&gt;', '>').replace('&lt;', '<')

        # ユーザー ID が数字のみで構成されていれば数値として扱い、そうでなければ匿名化されたユーザー ID としてそのまま扱う
        raw_user_id = element.get('user_id', '')
        user_id: int | str = int(raw_user_id) if re.fullmatch(r'\d+', raw_user_id) else raw_user_id

        date = _toInt(element.get('date'))
        date_usec = _toInt(element.get('date_usec'))
        account_type = _toInt(element.get('premium'))

        is_my_post = element.get('yourpost') == '1'
        if isinstance(user_id, int) and logged_in_user_id is not None and user_id == logged_in_user_id:
            is_my_post = True

        return cls(
            thread_id = element.get('thread', ''),
            no = _toInt(element.get('no')),
            vpos = _toInt(element.get('vpos')),
            date = datetime.fromtimestamp(date + date_usec / 1e6),
            timestamp = date * 1000,
            locale = element.get('locale'),
            command = element.get('mail', ''),
            content = content,
            is_my_post = is_my_post,
            user = NicoLiveCommentUser(
                id = user_id,
                score = _toInt(element.get('score')),
                account_type = account_type,
                is_premium = account_type > 0,
                is_anonymous = _toInt(element.get('anonymity')) != 0,
            ),
        )

    def isControlComment(self) -> bool:
        """ 運営コメントなどの制御用コメントかどうか """
        return self.user.id == SYSTEM_USER_ID or self.user.account_type == AccountType.ADMIN

    def isNormalComment(self) -> bool:
        return not (self.isControlComment() and self.isPostByDistributor())

    def isPostByDistributor(self) -> bool:
        """ 配信者自身が投稿したコメントかどうか """
        return self.user.account_type == AccountType.DISTRIBUTOR

    def isPostBySelf(self) -> bool:
        return self.is_my_post

    def isPostByAnonymous(self) -> bool:
        return self.user.is_anonymous

    def isPostByPremiumUser(self) -> bool:
        return self.user.is_premium


class ThreadEvent(BaseModel):
    """
    接続時にコメントサーバーから返される thread 要素の情報
    """
    # スレッド ID
    thread: str
    # コメント投稿に必要なチケット
    ticket: str | None = None
    # スレッド内の最新のコメント番号
    last_res: int | None = None
    # コメントサーバーの現在時刻 (UNIX タイムスタンプ)
    server_time: int | None = None


class ChatEvent(BaseModel):
    """
    コメントサーバーから配信された chat 要素
    """
    comment: NicoLiveComment


class ChatResultEvent(BaseModel):
    """
    コメント投稿後にコメントサーバーから返される chat_result 要素
    """
    # 投稿結果のステータスコード
    status: int
    # 投稿されたコメント (chat_result 内に chat 要素がなければ None)
    comment: NicoLiveComment | None = None
