
from __future__ import annotations

import lxml.etree as ET
from typing import Any, Union

from nicolive_comment_client.constants import (
    ChatEvent,
    ChatResultEvent,
    NicoLiveComment,
    ThreadEvent,
)
from nicolive_comment_client.utils import sanitize_for_xml


ServerEvent = Union[ThreadEvent, ChatEvent, ChatResultEvent]


class ChatProtocol:
    """
    ニコニコ生放送のコメントサーバーとやり取りする XML フレームの組み立てと解析を行う
    コメントサーバーとの通信は UTF-8 の XML 要素を NUL (0x00) で区切ったもの

    送信するフレーム:
    ・接続 : <thread thread="{スレッド ID}" version="20061206" res_from="-{取得するコメント数}"/>
    ・投稿 : <chat thread="{スレッド ID}" ticket="{チケット}" postkey="{ポストキー}" mail="{コマンド}" user_id="{ユーザー ID}" premium="{0|1}">{コメント}</chat>
    """

    # 接続フレームで送信するプロトコルバージョン
    PROTOCOL_VERSION = '20061206'

    # フレームの区切り文字
    DELIMITER = b'\0'

    # 受信したフレームは壊れていることもあるので、できる限り読める部分だけ読む
    PARSER = ET.XMLParser(recover=True)


    @staticmethod
    def buildConnectFrame(thread_id: str, first_get_comments: int = 100) -> bytes:
        """
        コメントサーバーへの接続フレームを組み立てる

        Args:
            thread_id (str): 接続先のスレッド ID
            first_get_comments (int, default=100): 接続時に遡って取得するコメント数

        Returns:
            bytes: NUL で終端された接続フレーム
        """

        element = ET.Element('thread', {
            'thread': str(thread_id),
            'version': ChatProtocol.PROTOCOL_VERSION,
            'res_from': f'-{first_get_comments}',
        })
        return ET.tostring(element, encoding='utf-8', xml_declaration=False) + ChatProtocol.DELIMITER


    @staticmethod
    def buildPostFrame(
        thread_id: str,
        ticket: str,
        post_key: str,
        command: str,
        user_id: int | str,
        is_premium: bool,
        comment: str,
    ) -> bytes:
        """
        コメント投稿フレームを組み立てる
        属性値とコメント本文のエスケープは lxml に任せる (lxml.etree を使うことで属性の順序も保持できる)

        Args:
            thread_id (str): 投稿先のスレッド ID
            ticket (str): 接続時に発行されたチケット
            post_key (str): 投稿直前に取得したポストキー
            command (str): コメントのコマンド (184, red naka big など / mail 属性として送る)
            user_id (int | str): 投稿するユーザーの ID
            is_premium (bool): 投稿するユーザーがプレミアム会員かどうか
            comment (str): コメント本文

        Returns:
            bytes: NUL で終端されたコメント投稿フレーム
        """

        element = ET.Element('chat', {
            'thread': str(thread_id),
            'ticket': str(ticket),
            'postkey': str(post_key),
            'mail': sanitize_for_xml(command),
            'user_id': str(user_id),
            'premium': '1' if is_premium else '0',
        })
        ## 制御文字が入ってると lxml が ValueError を吐くので sanitize してから設定している
        element.text = sanitize_for_xml(comment)
        return ET.tostring(element, encoding='utf-8', xml_declaration=False) + ChatProtocol.DELIMITER


    @staticmethod
    def parseFrame(frame: bytes | str, logged_in_user_id: int | None = None) -> list[ServerEvent]:
        """
        コメントサーバーから受信したフレームを解析し、イベントのリストに変換する
        1 つのフレームにルート要素のない兄弟要素が複数含まれていることもあるため、<packet> で包んでからパースし、
        要素ごとに独立して変換する
        thread / chat / chat_result 以外の要素は無視する

        Args:
            frame (bytes | str): 区切り文字を除いたフレーム
            logged_in_user_id (int | None, default=None): 現在ログイン中のユーザーの ID

        Returns:
            list[ServerEvent]: フレームに含まれていたイベントのリスト (出現順)
        """

        if isinstance(frame, bytes):
            frame = frame.decode('utf-8', errors='replace')
        frame = frame.replace('\0', '').strip()
        if frame == '':
            return []

        try:
            root = ET.fromstring(f'<packet>{frame}</packet>', ChatProtocol.PARSER)
        except ET.XMLSyntaxError:
            return []
        if root is None:
            return []

        events: list[ServerEvent] = []
        for element in root:

            # コメントノードや処理命令は無視する
            if not isinstance(element.tag, str):
                continue

            # 値が壊れた要素が 1 つ混ざっていても、同じフレームの他の要素は変換する
            try:
                event = ChatProtocol.__parseElement(element, logged_in_user_id)
            except (ValueError, OverflowError, OSError):
                continue
            if event is not None:
                events.append(event)

        return events


    @staticmethod
    def __parseElement(element: Any, logged_in_user_id: int | None) -> ServerEvent | None:

        if element.tag == 'thread':
            return ThreadEvent(
                thread = element.get('thread', ''),
                ticket = element.get('ticket'),
                last_res = ChatProtocol.__toOptionalInt(element.get('last_res')),
                server_time = ChatProtocol.__toOptionalInt(element.get('server_time')),
            )

        if element.tag == 'chat':
            return ChatEvent(comment=NicoLiveComment.fromRawXML(element, logged_in_user_id))

        if element.tag == 'chat_result':
            # status 属性が解釈できない chat_result は投稿失敗として扱う
            status = ChatProtocol.__toOptionalInt(element.get('status'))
            chat_element = element.find('chat')
            comment = None
            if chat_element is not None:
                # 投稿結果そのものは失わないよう、中の chat 要素が壊れていたらコメントなしとして扱う
                try:
                    comment = NicoLiveComment.fromRawXML(chat_element, logged_in_user_id)
                except (ValueError, OverflowError, OSError):
                    comment = None
            return ChatResultEvent(
                status = status if status is not None else -1,
                comment = comment,
            )

        return None



    @staticmethod
    def __toOptionalInt(value: str | None) -> int | None:
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None
