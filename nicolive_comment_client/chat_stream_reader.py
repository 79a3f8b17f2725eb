
class ChatStreamReader:
    """
    コメントサーバーから受信したバイトストリームを NUL (0x00) 区切りのフレームに分割するためのクラス
    1 回の受信で複数のフレームが届いたり、1 つのフレームが複数回の受信に分かれて届いたりするので、
    内部バッファに溜め込んでから完全なフレームだけを取り出す
    """

    # フレームの区切り文字
    DELIMITER = b'\0'


    def __init__(self):
        """
        ChatStreamReader のコンストラクタ
        """

        self.buffer = bytearray()


    def addNewChunk(self, chunk: bytes) -> None:
        """
        新しいチャンクデータを内部バッファに追加する

        Args:
            chunk (bytes): 追加するバイト列
        """

        self.buffer.extend(chunk)


    def unshiftChunk(self) -> bytes | None:
        """
        バッファから次のフレームを抽出する
        UTF-8 のマルチバイト文字が受信の境界で分断されることがあるため、デコードはフレーム単位で行う前提

        Returns:
            bytes | None: 抽出されたフレーム (区切り文字は含まない / データが不足している場合は None を返す)
        """

        index = self.buffer.find(self.DELIMITER)
        if index < 0:
            return None  # データが不足している場合

        frame = bytes(self.buffer[:index])
        del self.buffer[:index + 1]
        return frame


    def clear(self) -> None:
        """
        内部バッファに残っている不完全なフレームを破棄する
        """

        self.buffer.clear()
