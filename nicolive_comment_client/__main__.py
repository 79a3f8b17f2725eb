
import asyncio
import typer
from pathlib import Path
from rich import print
from rich.rule import Rule
from rich.style import Style

from nicolive_comment_client import __version__
from nicolive_comment_client.comment_provider import CommentProvider
from nicolive_comment_client.constants import LiveSession, NicoLiveComment
from nicolive_comment_client.exceptions import NicoLiveCommentError
from nicolive_comment_client.utils import AsyncTyper


app = AsyncTyper(help='NicoLiveCommentClient: Nicolive Comment Server Client Library')


def create_live_session(
    nicolive_program_id: str,
    addr: str,
    port: int,
    thread: str,
    user_id: int,
    premium: bool,
    user_session: str | None,
) -> LiveSession:
    cookies = {'user_session': user_session} if user_session else {}
    return LiveSession(
        nicolive_program_id = nicolive_program_id,
        addr = addr,
        port = port,
        thread = thread,
        user_id = user_id,
        is_premium = premium,
        cookies = cookies,
    )


@app.command(help='Stream comments from the comment server until the live ends.')
async def stream(
    nicolive_program_id: str = typer.Argument(help='Nicolive program ID (ex: lv345479988)'),
    addr: str = typer.Option(help='Comment server address'),
    port: int = typer.Option(help='Comment server port'),
    thread: str = typer.Option(help='Comment server thread ID'),
    user_id: int = typer.Option(default=0, help='Viewer user ID'),
    premium: bool = typer.Option(default=False, help='Whether the viewer is a premium member'),
    user_session: str | None = typer.Option(default=None, help='user_session cookie value'),
    first_get_comments: int = typer.Option(default=100, help='Number of past comments to fetch on connect'),
    verbose: bool = typer.Option(default=False, help='Show verbose log'),
    log_path: Path | None = typer.Option(default=None, help='Append log to this file'),
):
    print(Rule(characters='-', style=Style(color='#E33157')))

    live_session = create_live_session(nicolive_program_id, addr, port, thread, user_id, premium, user_session)
    provider = CommentProvider(live_session, verbose=verbose, console_output=True, log_path=log_path)

    # コメントを受信したら表示する
    def on_comment(comment: NicoLiveComment) -> None:
        print(str(comment))
        print(Rule(characters='-', style=Style(color='#E33157')))

    # 接続が閉じられるまで待機する
    closed = asyncio.Event()
    provider.onDidReceiveComment(on_comment)
    provider.onDidCloseConnection(closed.set)

    try:
        await provider.connect(first_get_comments=first_get_comments)
        await closed.wait()
    except NicoLiveCommentError as ex:
        print(f'[red]{ex}[/red]')
        raise typer.Exit(code=1)
    finally:
        await provider.dispose()


@app.command(help='Post a comment to the comment server.')
async def post(
    nicolive_program_id: str = typer.Argument(help='Nicolive program ID (ex: lv345479988)'),
    comment: str = typer.Argument(help='Comment to post'),
    addr: str = typer.Option(help='Comment server address'),
    port: int = typer.Option(help='Comment server port'),
    thread: str = typer.Option(help='Comment server thread ID'),
    user_id: int = typer.Option(help='Viewer user ID'),
    user_session: str = typer.Option(help='user_session cookie value'),
    premium: bool = typer.Option(default=False, help='Whether the viewer is a premium member'),
    command: list[str] = typer.Option(default=[], help='Comment command (ex: --command 184 --command big)'),
    timeout: float = typer.Option(default=3.0, help='Seconds to wait for the post result'),
    verbose: bool = typer.Option(default=False, help='Show verbose log'),
):
    print(Rule(characters='-', style=Style(color='#E33157')))

    live_session = create_live_session(nicolive_program_id, addr, port, thread, user_id, premium, user_session)
    provider = CommentProvider(live_session, verbose=verbose, console_output=True)

    try:
        await provider.connect(first_get_comments=0)
        posted = await provider.postComment(comment, command, timeout=timeout)
        if posted is not None:
            print(str(posted))
        else:
            print('Comment posted.')
        print(Rule(characters='-', style=Style(color='#E33157')))
    except NicoLiveCommentError as ex:
        print(f'[red]{ex}[/red]')
        raise typer.Exit(code=1)
    finally:
        await provider.dispose()


@app.command(help='Show version.')
def version():
    print(f'NicoLiveCommentClient version {__version__}')


if __name__ == '__main__':
    app()
