"""
pytest configuration and fixtures.
"""

import asyncio
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
import pytest_asyncio

from nicolive_comment_client.comment_provider import CommentProvider
from nicolive_comment_client.constants import LiveSession


THREAD_ID = '1234567890'
TICKET = '0x12ab34cd'
USER_ID = 12345
POST_KEY = 'abcdef.1600000000.XXXXXXXX'


class FakeCommentServer:
    """
    Local TCP server speaking the comment server protocol.

    Answers the connect frame with a thread element (followed by `backlog`),
    and, when `post_status` is set, answers post frames with a chat_result.
    """

    def __init__(self) -> None:
        self.server: asyncio.AbstractServer | None = None
        self.port = 0
        self.connection_count = 0
        self.respond_to_connect = True
        self.ticket = TICKET
        self.backlog = b''
        self.post_status: int | None = 0
        self.frames: list[bytes] = []
        self.posted: asyncio.Queue[bytes] = asyncio.Queue()
        self.writers: list[asyncio.StreamWriter] = []

    async def start(self) -> None:
        self.server = await asyncio.start_server(self._handle, '127.0.0.1', 0)
        self.port = self.server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        self.closeClients()
        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()

    def closeClients(self) -> None:
        for writer in self.writers:
            writer.close()
        self.writers.clear()

    async def send(self, data: bytes) -> None:
        writer = self.writers[-1]
        writer.write(data)
        await writer.drain()

    async def nextPostedFrame(self, timeout: float = 2.0) -> bytes:
        return await asyncio.wait_for(self.posted.get(), timeout)

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connection_count += 1
        self.writers.append(writer)
        buffer = bytearray()
        try:
            while True:
                data = await reader.read(4096)
                if not data:
                    break
                buffer.extend(data)
                while b'\0' in buffer:
                    index = buffer.index(b'\0')
                    frame = bytes(buffer[:index])
                    del buffer[:index + 1]
                    self.frames.append(frame)
                    await self._respond(frame, writer)
        except (ConnectionError, OSError):
            pass
        finally:
            writer.close()

    async def _respond(self, frame: bytes, writer: asyncio.StreamWriter) -> None:
        if frame.startswith(b'<thread'):
            if not self.respond_to_connect:
                return
            writer.write(
                f'<thread resultcode="0" thread="{THREAD_ID}" last_res="10" ticket="{self.ticket}" '
                f'revision="1" server_time="1600000000"/>\0'.encode() + self.backlog
            )
            await writer.drain()
        elif frame.startswith(b'<chat'):
            await self.posted.put(frame)
            if self.post_status is None:
                return
            writer.write(
                f'<chat_result thread="{THREAD_ID}" status="{self.post_status}" no="11">'
                f'<chat thread="{THREAD_ID}" no="11" vpos="100" date="1600000000" date_usec="0" '
                f'mail="184" user_id="{USER_ID}" premium="1" yourpost="1">posted</chat>'
                f'</chat_result>\0'.encode()
            )
            await writer.drain()


class FakePostKeyAPI:
    """Handler for httpx.MockTransport that stands in for the post key API."""

    def __init__(self) -> None:
        self.status_code = 200
        self.body = f'postkey={POST_KEY}'
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.body)


@pytest_asyncio.fixture
async def comment_server() -> AsyncGenerator[FakeCommentServer, None]:
    """Start a fake comment server on a free local port."""
    server = FakeCommentServer()
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def postkey_api() -> FakePostKeyAPI:
    return FakePostKeyAPI()


@pytest_asyncio.fixture
async def live_session(comment_server: FakeCommentServer) -> LiveSession:
    return LiveSession(
        nicolive_program_id = 'lv345479988',
        addr = '127.0.0.1',
        port = comment_server.port,
        thread = THREAD_ID,
        user_id = USER_ID,
        is_premium = True,
        cookies = {'user_session': 'user_session_12345_XXXXXXXX'},
    )


@pytest_asyncio.fixture
async def provider(live_session: LiveSession, postkey_api: FakePostKeyAPI) -> AsyncGenerator[CommentProvider, None]:
    """CommentProvider whose HTTP client talks to the fake post key API."""
    provider = CommentProvider(live_session)
    await provider.httpx_client.aclose()
    provider.httpx_client = httpx.AsyncClient(transport=httpx.MockTransport(postkey_api))
    yield provider
    await provider.dispose()


def record(target: list[Any]):
    """Return a listener that appends its arguments to target."""
    def listener(*args: Any) -> None:
        target.append(args[0] if len(args) == 1 else args)
    return listener
