"""CLI entry point for pairctl."""

import asyncio
from pathlib import Path

import click

from pairctl import __version__
from pairctl.config import load_config
from pairctl.errors import PairctlError
from pairctl.logging import setup_logging
from pairctl.pairing import (
    LocalSessionBackend,
    PairingStatus,
    Session,
    SessionPairingController,
    format_code,
)


def _echo_session(session: Session) -> None:
    click.echo(f"Status: {session.status.label}")
    click.echo(session.status.description)
    if session.code is not None:
        click.echo(f"Session code: {format_code(session.code)}")


def _run(coro) -> None:
    """Run a coroutine, turning pairctl errors into a clean exit."""
    try:
        asyncio.run(coro)
    except PairctlError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to config file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug messages to stderr.")
@click.pass_context
def main(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """pairctl - Pair this machine with a remote device using a short code."""
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config)
    except PairctlError as e:
        raise click.ClickException(str(e))
    ctx.obj["logger"] = setup_logging(ctx.obj["config"], verbose=verbose)


def _backend(ctx: click.Context) -> LocalSessionBackend:
    return LocalSessionBackend.from_config(ctx.obj["config"])


@main.command()
@click.pass_context
def create(ctx: click.Context) -> None:
    """Create a new pairing session and show its code."""
    backend = _backend(ctx)
    errors: list[Exception] = []

    async def _create():
        controller = SessionPairingController(
            backend, on_create_failed=errors.append
        )
        try:
            await controller.create()
            if errors:
                raise PairctlError(f"Could not create session: {errors[0]}")
            _echo_session(controller.session)
        finally:
            controller.dispose()
            await backend.close()

    _run(_create())


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the persisted pairing session."""
    backend = _backend(ctx)

    async def _status():
        controller = SessionPairingController(backend)
        try:
            await controller.restore()
            _echo_session(controller.session)
        finally:
            controller.dispose()
            await backend.close()

    _run(_status())


@main.command()
@click.pass_context
def disconnect(ctx: click.Context) -> None:
    """Tear down the pairing session."""
    backend = _backend(ctx)

    async def _disconnect():
        controller = SessionPairingController(
            backend, on_disconnected=lambda: click.echo("Session disconnected.")
        )
        try:
            await controller.restore()
            await controller.disconnect()
        finally:
            controller.dispose()
            await backend.close()

    _run(_disconnect())


@main.command()
@click.option("--new", "create_new", is_flag=True, help="Create a new session first.")
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Stop watching after this many seconds.",
)
@click.pass_context
def watch(ctx: click.Context, create_new: bool, timeout: float | None) -> None:
    """Follow the pairing session until it is disconnected."""
    backend = _backend(ctx)
    interval = ctx.obj["config"].pairing.poll_interval

    async def _follow(
        controller: SessionPairingController, peer_left: asyncio.Event
    ) -> None:
        last_session = None
        while True:
            session = controller.session
            if peer_left.is_set() and session.status == PairingStatus.PAIRED:
                session = Session(session.code, PairingStatus.DISCONNECTED)
            if session != last_session:
                last_session = session
                _echo_session(session)
            if session.status in (PairingStatus.DISCONNECTED, PairingStatus.NONE):
                return
            await asyncio.sleep(interval)

    async def _watch():
        controller = SessionPairingController(backend)
        peer_left = asyncio.Event()
        subscription = None
        try:
            await controller.restore()
            if create_new:
                await controller.create()
            if not controller.session.is_active:
                _echo_session(controller.session)
                return
            if controller.status == PairingStatus.PAIRED:
                # restore() does not listen on a paired session
                subscription = backend.listen_session_status(
                    lambda: None, peer_left.set
                )
            try:
                await asyncio.wait_for(_follow(controller, peer_left), timeout)
            except asyncio.TimeoutError:
                click.echo("Stopped watching.")
        finally:
            if subscription is not None:
                subscription.cancel()
            controller.dispose()
            await backend.close()

    try:
        _run(_watch())
    except KeyboardInterrupt:
        pass


@main.command()
@click.argument("code")
@click.pass_context
def join(ctx: click.Context, code: str) -> None:
    """Join the waiting session as the remote device."""
    backend = _backend(ctx)
    _run(backend.join(code))
    click.echo("Paired.")


@main.command()
@click.pass_context
def leave(ctx: click.Context) -> None:
    """Leave the session as the remote device."""
    backend = _backend(ctx)
    _run(backend.leave())
    click.echo("Left session.")


@main.command()
def version() -> None:
    """Show version."""
    click.echo(f"pairctl version {__version__}")


if __name__ == "__main__":
    main()
