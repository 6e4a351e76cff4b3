"""Root CLI group and global flags."""

from __future__ import annotations

import click

from . import __version__
from .client import AtlasClient
from .config import load_config
from .constants import OUTPUT_FORMATS


@click.group()
@click.version_option(__version__, prog_name="fluidctl")
@click.option("-U", "--url", envvar="FLUIDCTL_URL", default=None, help="Atlas server URL.")
@click.option(
    "-F", "--format", "output_format",
    envvar="FLUIDCTL_FORMAT",
    type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
    default=None,
    help="Output format.",
)
@click.option(
    "-T", "--token",
    envvar="FLUIDCTL_TOKEN",
    default=None,
    help="Auth token. Used as-is, skipping login and the token cache.",
)
# Accepted for compatibility; the login flow uses the built-in public client.
@click.option("--client-id", default=None, hidden=True, help="OAuth client ID (unused).")
@click.option("--client-secret", default=None, hidden=True, help="OAuth client secret (unused).")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show HTTP requests and auth decisions.")
@click.pass_context
def cli(ctx, url, output_format, token, client_id, client_secret, verbose):
    """fluidctl is a command line tool for managing Fluidstack infrastructure."""
    ctx.ensure_object(dict)

    cfg = load_config()

    # CLI flags override config
    resolved_url = url or cfg.url
    resolved_output = (output_format or cfg.output).lower()
    if resolved_output not in OUTPUT_FORMATS:
        raise click.BadParameter(
            f"unsupported format: {resolved_output}", param_hint="'--format'"
        )

    ctx.obj["config"] = cfg
    ctx.obj["url"] = resolved_url
    ctx.obj["output_format"] = resolved_output
    ctx.obj["token"] = token
    ctx.obj["verbose"] = verbose
    ctx.obj["project_id"] = None

    # Token is resolved on the first request, not here
    client = AtlasClient(url=resolved_url, token=token, verbose=verbose)
    ctx.obj["client"] = client
    ctx.call_on_close(client.close)


# ── Register command groups ─────────────────────────────────────────────────

from .commands.auth import auth_group
from .commands.filesystems import filesystems_group
from .commands.instances import instances_group
from .commands.projects import projects_group
from .commands.slurm import slurm_group

cli.add_command(auth_group)
cli.add_command(instances_group)
cli.add_command(projects_group)
cli.add_command(filesystems_group)
cli.add_command(slurm_group)


def main():
    cli(auto_envvar_prefix="FLUIDCTL")


if __name__ == "__main__":
    main()
