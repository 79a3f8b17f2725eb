
from __future__ import annotations

import asyncio
import httpx
import re
import traceback
from pathlib import Path
from rich import print
from rich.rule import Rule
from rich.style import Style
from typing import Any, Callable, Hashable

from nicolive_comment_client.chat_protocol import ChatProtocol, ServerEvent
from nicolive_comment_client.chat_stream_reader import ChatStreamReader
from nicolive_comment_client.constants import (
    ChatEvent,
    ChatResultEvent,
    ChatResultStatus,
    CommentProviderEvent,
    ConnectionState,
    LiveSession,
    NicoLiveComment,
    PostCredentials,
    ThreadEvent,
)
from nicolive_comment_client.event_emitter import Disposable, EventEmitter
from nicolive_comment_client.exceptions import (
    ConnectionClosedError,
    ConnectionTimeoutError,
    DisposedError,
    EmptyCommentError,
    NicoLiveCommentError,
    NotConnectedError,
    PostError,
    PostKeyError,
    PostTimeoutError,
    SocketError,
)


class CommentProvider:
    """
    放送中の番組のコメントサーバーに接続し、コメントの受信と投稿を行うクライアント実装
    1 つの LiveSession (番組) に対して 1 つの接続のみを扱う

    コメントの投稿は「ポストキーの取得 → 投稿フレームの送信 → chat_result の待機」の順に行われるが、
    ポストキーは 1 つの CommentProvider で共有されているため、postComment() を並行して呼び出すと
    互いのポストキーを上書きしてしまうことがある
    また chat_result には投稿と対応付けられる情報がないため、届いた chat_result は待機中の最も古い投稿の結果として扱う
    並行して投稿する必要がある場合は、呼び出し側で postComment() の呼び出しを直列化すること
    """

    # User-Agent を Chrome 126 に偽装
    USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36'

    # コメント投稿用のポストキーを取得する API の URL
    GET_POSTKEY_URL = 'https://live.nicovideo.jp/api/getpostkey'

    # ソケットから 1 回に読み取る最大バイト数
    READ_BUFFER_SIZE = 65536

    # 配信者がこの内容のコメントを投稿したら放送終了の合図
    END_LIVE_COMMENT = '/disconnect'


    def __init__(self, live_session: LiveSession, verbose: bool = False, console_output: bool = False, log_path: Path | None = None) -> None:
        """
        CommentProvider のコンストラクタ

        Args:
            live_session (LiveSession): 接続先の番組の情報 (コピーせずに参照を保持する)
            verbose (bool, default=False): 詳細な動作ログを出力するかどうか
            console_output (bool, default=False): 動作ログをコンソールに出力するかどうか
            log_path (Path | None, default=None): 動作ログをファイルに出力する場合のパス (console_output と併用可能)
        """

        self.live_session: LiveSession | None = live_session
        self.post_credentials: PostCredentials | None = PostCredentials()

        self.verbose = verbose
        self.show_log = console_output
        self.log_path = log_path

        # コメントサーバーとの接続状態
        self.state = ConnectionState.DISCONNECTED
        # 接続後の最初のレスポンスを処理し終えたかどうか
        self.is_first_response_processed = False
        # dispose() が呼び出されたかどうか
        self.disposed = False

        # httpx の非同期 HTTP クライアントのインスタンスを作成
        self.httpx_client = httpx.AsyncClient(
            ## リクエストヘッダーを設定 (Chrome に偽装)
            headers = {
                'accept': '*/*',
                'accept-language': 'ja',
                'origin': 'https://live.nicovideo.jp',
                'referer': 'https://live.nicovideo.jp/',
                'user-agent': self.USER_AGENT,
            },
            ## リダイレクトを追跡する
            follow_redirects = True,
        )

        self._emitter = EventEmitter(error_handler=self._didErrorOnListener)
        self._stream_reader = ChatStreamReader()
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._receive_task: asyncio.Task[None] | None = None
        # 接続処理中に thread 要素の受信を待つための Future (接続に失敗した場合は例外が入る)
        self._connection_response: asyncio.Future[BaseException | None] | None = None
        # 現在の接続で thread 要素を受信したかどうか
        self._is_connection_established = False
        # chat_result の受信を待っているコメント投稿 (投稿順に並び、chat_result は先頭から割り当てる)
        self._pending_posts: list[asyncio.Future[ChatResultEvent]] = []


    def print(self, *args: Any, verbose_log: bool = False, **kwargs: Any) -> None:
        """
        CommentProvider の動作ログをコンソールやファイルに出力する

        Args:
            verbose_log (bool, default=False): 詳細な動作ログかどうか (指定された場合、コンストラクタで verbose が指定された時のみ出力する)
        """

        # このログが詳細な動作ログで、かつ詳細な動作ログの出力が有効でない場合は何もしない
        if verbose_log is True and self.verbose is False:
            return

        # 有効ならログをコンソールに出力する
        if self.show_log is True:
            print(*args, **kwargs)

        # ログファイルのパスが指定されている場合は、ログをファイルにも出力
        if self.log_path is not None:
            with self.log_path.open('a') as f:
                print(*args, **kwargs, file=f)


    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED


    def getLiveSession(self) -> LiveSession | None:
        """ この CommentProvider が保持している LiveSession を取得する """
        return self.live_session


    async def connect(self, first_get_comments: int = 100, timeout: float = 5.0) -> CommentProvider:
        """
        コメントサーバーへ接続する
        既に接続済みの場合は接続を行わない (再接続する場合は reconnect() を使う)

        Args:
            first_get_comments (int, default=100): 接続時に遡って取得するコメント数
            timeout (float, default=5.0): 接続のタイムアウト秒数

        Returns:
            CommentProvider: 自分自身

        Raises:
            DisposedError: 破棄済みの CommentProvider で呼び出された場合
            ConnectionTimeoutError: タイムアウトまでにコメントサーバーから thread 要素が返ってこなかった場合
            SocketError: コメントサーバーとの TCP 接続を確立できなかった場合
            ConnectionClosedError: 接続処理中に切断された場合
        """

        self._canContinue()

        # 既に接続済みの場合は何もしない
        if self.state is ConnectionState.CONNECTED and self._writer is not None:
            return self

        # 他の接続処理が進行中の場合は、その完了を待つ
        if self.state is ConnectionState.CONNECTING and self._connection_response is not None:
            error = await asyncio.shield(self._connection_response)
            if error is not None:
                raise error
            return self

        assert self.live_session is not None
        self.state = ConnectionState.CONNECTING
        self._is_connection_established = False
        self.is_first_response_processed = False
        self._emitter.unlockAutoEmit(CommentProviderEvent.PROCESS_FIRST_RESPONSE)
        self._stream_reader.clear()
        connection_response: asyncio.Future[BaseException | None] = asyncio.get_running_loop().create_future()
        self._connection_response = connection_response

        try:
            await asyncio.wait_for(self._openConnection(first_get_comments, connection_response), timeout)

        # タイムアウトまでに thread 要素が返ってこなかった
        ## TimeoutError は OSError のサブクラスなので、OSError より先に捕捉する
        except asyncio.TimeoutError:
            error = ConnectionTimeoutError(f'[CommentProvider: {self.live_session.nicolive_program_id}] Connection timed out.')
            self.print(f'Connection to {self.live_session.addr}:{self.live_session.port} timed out.')
            self.print(Rule(characters='-', style=Style(color='#E33157')))
            self._abortConnection(connection_response, error)
            raise error from None

        # TCP 接続の確立に失敗した
        except OSError as ex:
            self._abortConnection(connection_response, None)
            self._didErrorOnSocket(ex)
            error = SocketError(f'[CommentProvider: {self.live_session.nicolive_program_id}] Failed to connect to the comment server: {ex}', ex)
            self._settleConnectionResponse(connection_response, error)
            raise error from ex

        # 接続処理中に切断・破棄された
        except NicoLiveCommentError as ex:
            self._abortConnection(connection_response, ex)
            raise

        self.print(f'Connected to {self.live_session.addr}:{self.live_session.port} (thread: {self.live_session.thread})')
        self.print(Rule(characters='-', style=Style(color='#E33157')))
        return self


    async def reconnect(self, first_get_comments: int = 100, timeout: float = 5.0) -> CommentProvider:
        """
        既存の接続を (切断イベントを発行せずに) 破棄し、コメントサーバーへ接続し直す
        接続時に発行されたチケットも破棄される

        Args:
            first_get_comments (int, default=100): 接続時に遡って取得するコメント数
            timeout (float, default=5.0): 接続のタイムアウト秒数

        Returns:
            CommentProvider: 自分自身
        """

        self._canContinue()

        self._destroySocket()
        self.state = ConnectionState.DISCONNECTED
        if self.post_credentials is not None:
            self.post_credentials.ticket = None
        if self._connection_response is not None:
            self._settleConnectionResponse(self._connection_response, ConnectionClosedError('Connection was reset by reconnect().'))
        self._rejectPendingPosts(ConnectionClosedError('Connection was reset before the post result arrived.'))

        return await self.connect(first_get_comments, timeout)


    def disconnect(self) -> None:
        """
        コメントサーバーから切断する
        接続していない場合は何もしない
        """

        self._canContinue()

        if self._writer is None:
            return

        self._destroySocket()
        self.state = ConnectionState.DISCONNECTED
        if self._connection_response is not None:
            self._settleConnectionResponse(self._connection_response, ConnectionClosedError('Disconnected before the comment server responded.'))
        self._rejectPendingPosts(ConnectionClosedError('Disconnected before the post result arrived.'))

        self.print('Disconnected from the comment server.')
        self.print(Rule(characters='-', style=Style(color='#E33157')))
        self._emitter.emit(CommentProviderEvent.CLOSE_CONNECTION)


    async def dispose(self) -> None:
        """
        コメントサーバーから切断し、この CommentProvider を破棄する
        破棄後はすべての操作が DisposedError になる (dispose() 自体は何度呼び出しても問題ない)
        """

        if self.disposed:
            return

        # 接続処理中や投稿結果を待機しているものがあれば、切断より先に破棄されたことを伝える
        if self._connection_response is not None:
            self._settleConnectionResponse(self._connection_response, DisposedError('CommentProvider has been disposed'))
        self._rejectPendingPosts(DisposedError('CommentProvider has been disposed'))

        self.disconnect()
        self._destroySocket()

        self.disposed = True
        self.live_session = None
        self.post_credentials = None
        self._emitter.dispose()
        await self.httpx_client.aclose()


    async def fetchPostKey(self) -> str:
        """
        API からコメント投稿用のポストキーを取得する
        ポストキーは 1 回の投稿ごとに使い捨てなので、投稿の直前に毎回取得し直す必要がある

        Returns:
            str: 取得したポストキー

        Raises:
            DisposedError: 破棄済みの CommentProvider で呼び出された場合
            PostKeyError: ポストキーの取得に失敗した場合
        """

        self._canContinue()
        assert self.live_session is not None

        thread_id = self.live_session.thread
        self.httpx_client.cookies.update(self.live_session.cookies)
        self.print(f'Fetching post key (thread: {thread_id}) ...', verbose_log=True)

        try:
            response = await self.httpx_client.get(self.GET_POSTKEY_URL, params={'thread': thread_id}, timeout=10.0)
        except httpx.HTTPError as ex:
            self.print('Error fetching post key:')
            self.print(traceback.format_exc())
            self.print(Rule(characters='-', style=Style(color='#E33157')))
            raise PostKeyError(f'Failed to fetch post key: {ex}') from ex

        # レスポンスは postkey=XXXXXXXX の形式
        post_key = ''
        if response.status_code == 200:
            match = re.match(r'^postkey=(.*)\s*', response.text)
            if match is not None:
                post_key = match.group(1).strip()

        if post_key == '':
            self.print(f'Failed to fetch post key. (HTTP {response.status_code})')
            raise PostKeyError('Failed to fetch post key', status_code=response.status_code)

        # ポストキーの取得中に破棄されていることがある
        self._canContinue()
        assert self.post_credentials is not None
        self.post_credentials.post_key = post_key
        return post_key


    async def postComment(self, comment: str, command: str | list[str] = '', timeout: float = 3.0) -> NicoLiveComment | None:
        """
        コメントを投稿する

        Args:
            comment (str): 投稿するコメント
            command (str | list[str], default=''): コメントのコマンド (184, big など / リストで渡した場合は空白区切りで連結する)
            timeout (float, default=3.0): 投稿結果を待つタイムアウト秒数

        Returns:
            NicoLiveComment | None: コメントサーバーから返された投稿済みコメント (chat_result に chat 要素が含まれていない場合は None)

        Raises:
            DisposedError: 破棄済みの CommentProvider で呼び出された場合
            EmptyCommentError: コメントが空の場合
            NotConnectedError: コメントサーバーに接続していない場合
            PostKeyError: ポストキーの取得に失敗した場合
            PostTimeoutError: タイムアウトまでに投稿結果が返ってこなかった場合
            PostError: コメントサーバーが投稿を受け付けなかった場合
            ConnectionClosedError: 投稿結果を受信する前に切断された場合
        """

        self._canContinue()

        if not isinstance(comment, str) or comment.strip() == '':
            raise EmptyCommentError('Can not post empty comment')

        if self._writer is None or self.state is not ConnectionState.CONNECTED:
            raise NotConnectedError('Not connected to the comment server.')

        if isinstance(command, (list, tuple)):
            command = ' '.join(command)

        # 投稿の直前にポストキーを取得し直す
        await self.fetchPostKey()

        # ポストキーの取得中に切断されていることがある
        writer = self._writer
        if writer is None:
            raise NotConnectedError('Not connected to the comment server.')
        assert self.live_session is not None and self.post_credentials is not None

        # スレッド ID は放送中に変わることがあるので、投稿時点での LiveSession の値を使う
        self.post_credentials.thread_id = self.live_session.thread
        frame = ChatProtocol.buildPostFrame(
            thread_id = self.post_credentials.thread_id,
            ticket = self.post_credentials.ticket or '',
            post_key = self.post_credentials.post_key or '',
            command = command,
            user_id = self.live_session.user_id,
            is_premium = self.live_session.is_premium,
            comment = comment,
        )

        # 待機中の投稿の列に並び、順番が回ってきた chat_result を投稿結果として受け取る
        post_result: asyncio.Future[ChatResultEvent] = asyncio.get_running_loop().create_future()
        self._pending_posts.append(post_result)
        try:
            try:
                writer.write(frame)
                await writer.drain()
            except OSError as ex:
                self._didErrorOnSocket(ex)
                raise SocketError(f'Failed to send comment: {ex}', ex) from ex

            try:
                result = await asyncio.wait_for(post_result, timeout)
            except asyncio.TimeoutError:
                self.print('Post result response is timed out.')
                raise PostTimeoutError('Post result response is timed out.') from None
        finally:
            if post_result in self._pending_posts:
                self._pending_posts.remove(post_result)

        if result.status == ChatResultStatus.SUCCESS:
            self.print(f'Comment posted: {comment}', verbose_log=True)
            return result.comment

        error = PostError(result.status)
        self.print(f'{error} (status: {result.status})')
        raise error


    def pourXMLData(self, xml: str | bytes) -> None:
        """
        与えられた XML をソケットから受信したデータとして処理する
        末尾に区切り文字がなければ付け足す

        Args:
            xml (str | bytes): 受信したことにする XML
        """

        self._canContinue()

        data = xml.encode('utf-8') if isinstance(xml, str) else xml
        if not data.endswith(ChatStreamReader.DELIMITER):
            data += ChatStreamReader.DELIMITER
        self._didReceiveData(data)


    def onDidConnect(self, listener: Callable[[ThreadEvent], Any]) -> Disposable:
        """ コメントサーバーから最初の thread 要素を受信したとき (接続ごとに 1 回のみ) """
        self._canContinue()
        return self._emitter.on(CommentProviderEvent.CONNECT, listener)

    def onDidReceiveData(self, listener: Callable[[bytes], Any]) -> Disposable:
        """ ソケットから生のデータを受信したとき """
        self._canContinue()
        return self._emitter.on(CommentProviderEvent.RECEIVE_DATA, listener)

    def onDidReceiveComment(self, listener: Callable[[NicoLiveComment], Any]) -> Disposable:
        """ コメントを受信したとき """
        self._canContinue()
        return self._emitter.on(CommentProviderEvent.RECEIVE_COMMENT, listener)

    def onDidProcessFirstResponse(self, listener: Callable[[list[NicoLiveComment]], Any]) -> Disposable:
        """ 接続後の最初のレスポンスを処理し終えたとき (処理済みなら購読した時点で即座に呼び出される) """
        self._canContinue()
        return self._emitter.on(CommentProviderEvent.PROCESS_FIRST_RESPONSE, listener)

    def onDidReceivePostResult(self, listener: Callable[[ChatResultEvent], Any]) -> Disposable:
        """ コメント投稿結果 (chat_result) を受信したとき """
        self._canContinue()
        return self._emitter.on(CommentProviderEvent.RECEIVE_POST_RESULT, listener)

    def onDidError(self, listener: Callable[[Exception], Any]) -> Disposable:
        """ ソケットでエラーが発生したとき """
        self._canContinue()
        return self._emitter.on(CommentProviderEvent.ERROR, listener)

    def onDidCloseConnection(self, listener: Callable[[], Any]) -> Disposable:
        """ コメントサーバーとの接続が閉じられたとき """
        self._canContinue()
        return self._emitter.on(CommentProviderEvent.CLOSE_CONNECTION, listener)

    def onDidEndLive(self, listener: Callable[[LiveSession], Any]) -> Disposable:
        """ 配信者から放送終了の合図を受信したとき """
        self._canContinue()
        return self._emitter.on(CommentProviderEvent.END_LIVE, listener)


    async def __aenter__(self) -> CommentProvider:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.dispose()


    def _canContinue(self) -> None:
        if self.disposed:
            raise DisposedError('CommentProvider has been disposed')


    async def _openConnection(self, first_get_comments: int, connection_response: asyncio.Future[BaseException | None]) -> None:
        """
        コメントサーバーとの TCP 接続を確立して接続フレームを送信し、thread 要素を受信するまで待機する
        """

        assert self.live_session is not None
        self.print(f'Connecting to {self.live_session.addr}:{self.live_session.port} ...', verbose_log=True)

        reader, writer = await asyncio.open_connection(self.live_session.addr, self.live_session.port)

        # TCP 接続の確立を待っている間に disconnect() や dispose() された
        if connection_response.done():
            writer.close()
            error = connection_response.result()
            raise error if error is not None else ConnectionClosedError('Connection was reset while connecting.')

        self._reader = reader
        self._writer = writer

        # 接続できた時点で受信タスクを開始し、接続直後のエラーや切断もイベントとして発行されるようにする
        self._receive_task = asyncio.create_task(self._receiveLoop(reader))

        # スレッド情報を送信する
        writer.write(ChatProtocol.buildConnectFrame(self.live_session.thread, first_get_comments))
        await writer.drain()

        # wait_for() のタイムアウトで Future 自体がキャンセルされないよう shield() で包む
        error = await asyncio.shield(connection_response)
        if error is not None:
            raise error


    def _abortConnection(self, connection_response: asyncio.Future[BaseException | None], error: BaseException | None) -> None:
        # reconnect() や disconnect() によって既に後始末されている場合は何もしない
        if self._connection_response is not connection_response:
            return
        self._destroySocket()
        self.state = ConnectionState.DISCONNECTED
        if error is not None:
            self._settleConnectionResponse(connection_response, error)


    def _settleConnectionResponse(self, connection_response: asyncio.Future[BaseException | None], error: BaseException | None) -> None:
        if self._connection_response is connection_response:
            self._connection_response = None
        if not connection_response.done():
            connection_response.set_result(error)


    def _destroySocket(self) -> None:
        """
        受信タスクを止めてソケットを閉じる (イベントは発行しない)
        """

        if self._receive_task is not None:
            # 受信タスク自身から呼び出された場合は、次に await した時点でキャンセルされる
            self._receive_task.cancel()
            self._receive_task = None
        if self._writer is not None:
            self._writer.close()
        self._reader = None
        self._writer = None
        self._stream_reader.clear()


    def _rejectPendingPosts(self, error: NicoLiveCommentError) -> None:
        for post_result in list(self._pending_posts):
            if not post_result.done():
                post_result.set_exception(error)
        self._pending_posts.clear()


    async def _receiveLoop(self, reader: asyncio.StreamReader) -> None:
        """
        コメントサーバーからデータを受信し続ける
        ソケットが閉じられるまで終了しない (disconnect() された場合はキャンセルされる)
        """

        while True:
            try:
                data = await reader.read(self.READ_BUFFER_SIZE)
            except OSError as ex:
                self._didErrorOnSocket(ex)
                break
            # EOF: コメントサーバーから切断された
            if not data:
                break

            try:
                self._didReceiveData(data)
            except KeyboardInterrupt:
                raise
            except Exception:
                self.print('Error processing received data:')
                self.print(traceback.format_exc())
                self.print(Rule(characters='-', style=Style(color='#E33157')))

        self._didCloseSocket(reader)


    def _didReceiveData(self, data: bytes) -> None:
        """
        受信したデータをフレームに分割し、要素ごとにイベントを発行する
        """

        self._emitter.emit(CommentProviderEvent.RECEIVE_DATA, data)

        self._stream_reader.addNewChunk(data)
        logged_in_user_id = self.live_session.user_id if self.live_session is not None else None
        writer = self._writer
        comments: list[NicoLiveComment] = []
        has_frame = False

        while True:
            frame = self._stream_reader.unshiftChunk()
            if frame is None:
                break
            has_frame = True
            self.print(frame.decode('utf-8', errors='replace'), verbose_log=True)

            for event in ChatProtocol.parseFrame(frame, logged_in_user_id):
                self._dispatchServerEvent(event, comments)
                # 放送終了などで処理中に切断された場合は、残りの要素は処理しない
                if self._writer is not writer:
                    return

        if has_frame and self.is_first_response_processed is False:
            self.is_first_response_processed = True
            self._emitter.lockAutoEmit(CommentProviderEvent.PROCESS_FIRST_RESPONSE, comments)


    def _dispatchServerEvent(self, event: ServerEvent, comments: list[NicoLiveComment]) -> None:

        # 接続時の応答
        if isinstance(event, ThreadEvent):
            if self._is_connection_established is True:
                return
            self._is_connection_established = True
            # ソケットを開いて応答を待っている場合のみ接続済みにする (pourXMLData() で流し込まれた thread 要素では状態を変えない)
            if self.state is ConnectionState.CONNECTING and self._writer is not None:
                self.state = ConnectionState.CONNECTED
            if self.post_credentials is not None:
                self.post_credentials.ticket = event.ticket
            if self._connection_response is not None:
                self._settleConnectionResponse(self._connection_response, None)
            self._emitter.emit(CommentProviderEvent.CONNECT, event)

        # コメント
        elif isinstance(event, ChatEvent):
            comment = event.comment
            comments.append(comment)
            self._emitter.emit(CommentProviderEvent.RECEIVE_COMMENT, comment)

            # 配信終了の合図が来たら切断する
            if comment.isPostByDistributor() and comment.content == self.END_LIVE_COMMENT:
                self.print('Live Ended. Disconnecting...')
                self._emitter.emit(CommentProviderEvent.END_LIVE, self.live_session)
                if self._writer is not None:
                    self.disconnect()

        # コメント投稿結果
        elif isinstance(event, ChatResultEvent):
            # 待機中の最も古い投稿に結果を渡す
            while self._pending_posts:
                post_result = self._pending_posts.pop(0)
                if not post_result.done():
                    post_result.set_result(event)
                    break
            self._emitter.emit(CommentProviderEvent.RECEIVE_POST_RESULT, event)
            if event.comment is not None:
                self._emitter.emit(CommentProviderEvent.RECEIVE_COMMENT, event.comment)


    def _didErrorOnSocket(self, error: Exception) -> None:
        self.print('Error on the comment server connection:')
        self.print(''.join(traceback.format_exception(type(error), error, error.__traceback__)))
        self.print(Rule(characters='-', style=Style(color='#E33157')))
        self._emitter.emit(CommentProviderEvent.ERROR, error)


    def _didCloseSocket(self, reader: asyncio.StreamReader) -> None:
        # disconnect() や reconnect() で既に破棄された接続であれば何もしない
        if self._reader is not reader:
            return

        # 受信タスク自身から呼び出されているので、キャンセルせずに参照だけ外す
        self._receive_task = None
        self._destroySocket()
        self.state = ConnectionState.DISCONNECTED
        if self._connection_response is not None:
            self._settleConnectionResponse(self._connection_response, ConnectionClosedError('Connection was closed by the comment server.'))
        self._rejectPendingPosts(ConnectionClosedError('Connection was closed before the post result arrived.'))

        self.print('Connection closed by the comment server.')
        self.print(Rule(characters='-', style=Style(color='#E33157')))
        self._emitter.emit(CommentProviderEvent.CLOSE_CONNECTION)


    def _didErrorOnListener(self, event: Hashable, error: Exception) -> None:
        self.print(f'Error in {event} listener:')
        self.print(''.join(traceback.format_exception(type(error), error, error.__traceback__)))
        self.print(Rule(characters='-', style=Style(color='#E33157')))
