"""Command-line interface for jujuprep."""

import asyncio
import os
from collections.abc import Coroutine
from typing import Annotated, Any, TypeVar

import typer

from jujuprep.cli.commands.prepare import run_prepare
from jujuprep.cli.commands.restore import run_restore
from jujuprep.cli.commands.status import run_status
from jujuprep.config.loader import get_env_overrides, merge_overrides
from jujuprep.config.models import ConfigOverrides
from jujuprep.config.presets import get_available_presets
from jujuprep.core.errors import PhaseError
from jujuprep.core.logging import get_logger, setup_logging
from jujuprep.system.command import ExecError

logger = get_logger(__name__)

T = TypeVar("T")

app = typer.Typer(
    name="jujuprep",
    help="Provision and tear down machines for charm development",
    no_args_is_help=True,
)

# apt-get exits 100 when it cannot take its lock.
_APT_LOCK_FAILURE = 100


def _split(values: list[str] | None) -> list[str]:
    """Accept both repeated flags and comma-separated values."""
    items: list[str] = []
    for value in values or []:
        items += [v.strip() for v in value.split(",") if v.strip()]
    return items


def _needs_root(error: Exception) -> bool:
    if isinstance(error, PhaseError):
        error = error.first
    if not isinstance(error, ExecError) or os.geteuid() == 0:
        return False
    return (
        "Permission denied" in error.output
        or "Could not open lock file" in error.output
        or error.returncode == _APT_LOCK_FAILURE
    )


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro``, turning any failure into a logged error and exit code 1."""
    try:
        return asyncio.run(coro)
    except Exception as e:
        if _needs_root(e):
            logger.error("This command needs root privileges, run it with sudo")
        else:
            logger.error(str(e))
            logger.debug("Failure details", exc_info=e)
        raise typer.Exit(code=1) from e


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    trace: Annotated[
        bool, typer.Option("--trace", help="Print every command and its output")
    ] = False,
) -> None:
    """Provision machines with Juju, its providers and the craft tools."""
    setup_logging(verbose=verbose, trace=trace)
    ctx.obj = {"verbose": verbose, "trace": trace}


@app.command()
def prepare(
    ctx: typer.Context,
    config: Annotated[
        str, typer.Option("--config", "-c", help="Path to a configuration file")
    ] = "",
    preset: Annotated[
        str,
        typer.Option(
            "--preset", "-p", help=f"Preset to use ({', '.join(get_available_presets())})"
        ),
    ] = "",
    disable_juju: Annotated[
        bool, typer.Option("--disable-juju", help="Do not install or bootstrap Juju")
    ] = False,
    juju_channel: Annotated[str, typer.Option("--juju-channel", help="Juju snap channel")] = "",
    lxd_channel: Annotated[str, typer.Option("--lxd-channel", help="LXD snap channel")] = "",
    microk8s_channel: Annotated[
        str, typer.Option("--microk8s-channel", help="MicroK8s snap channel")
    ] = "",
    k8s_channel: Annotated[str, typer.Option("--k8s-channel", help="k8s snap channel")] = "",
    charmcraft_channel: Annotated[
        str, typer.Option("--charmcraft-channel", help="Charmcraft snap channel")
    ] = "",
    snapcraft_channel: Annotated[
        str, typer.Option("--snapcraft-channel", help="Snapcraft snap channel")
    ] = "",
    rockcraft_channel: Annotated[
        str, typer.Option("--rockcraft-channel", help="Rockcraft snap channel")
    ] = "",
    google_credential_file: Annotated[
        str,
        typer.Option("--google-credential-file", help="Google Cloud credentials file"),
    ] = "",
    extra_snaps: Annotated[
        list[str] | None,
        typer.Option("--extra-snaps", help="Extra snaps, as name or name/channel"),
    ] = None,
    extra_debs: Annotated[
        list[str] | None, typer.Option("--extra-debs", help="Extra deb packages")
    ] = None,
) -> None:
    """Provision this machine."""
    if preset and preset not in get_available_presets():
        logger.error(
            f"Unknown preset '{preset}', choose one of: {', '.join(get_available_presets())}"
        )
        raise typer.Exit(code=1)

    flags = ConfigOverrides(
        disable_juju=disable_juju,
        juju_channel=juju_channel,
        k8s_channel=k8s_channel,
        microk8s_channel=microk8s_channel,
        lxd_channel=lxd_channel,
        charmcraft_channel=charmcraft_channel,
        snapcraft_channel=snapcraft_channel,
        rockcraft_channel=rockcraft_channel,
        google_credential_file=google_credential_file,
        extra_snaps=_split(extra_snaps),
        extra_debs=_split(extra_debs),
    )
    overrides = merge_overrides(flags, get_env_overrides())

    _run(run_prepare(config, preset, overrides, **ctx.obj))


@app.command()
def restore(ctx: typer.Context) -> None:
    """Undo the last prepare run on this machine."""
    _run(run_restore(trace=ctx.obj["trace"]))


@app.command()
def status() -> None:
    """Print the status of the last prepare run."""
    result = _run(run_status())
    typer.echo(result.value)


if __name__ == "__main__":
    app()
