"""Instance commands: create, delete, list, describe."""

from __future__ import annotations

import base64
from pathlib import Path
from uuid import UUID

import click
import yaml

from ..output import format_output
from .projects import resolve_project_id

INSTANCE_LIST_COLUMNS = [
    ("id", "ID"),
    ("name", "NAME"),
    ("type", "TYPE"),
    ("state", "STATE"),
    ("ip", "IP"),
]

CLOUD_CONFIG_HEADER = b"#cloud-config\n"


# ── Helpers ─────────────────────────────────────────────────────────────────

def parse_attrs(value: str) -> dict[str, str]:
    """Parse ``k1=v1,k2=v2,flag`` into a dict (bare keys map to "")."""
    attrs: dict[str, str] = {}
    for field in value.split(","):
        key, sep, val = field.partition("=")
        attrs[key] = val if sep else ""
    return attrs


def parse_filesystem_flag(value: str) -> UUID:
    """Extract the filesystem UUID from an ``id=<UUID>`` flag value."""
    attrs = parse_attrs(value)
    if "id" not in attrs:
        raise click.BadParameter(
            f"missing 'id' attribute in filesystem: {value}", param_hint="'--filesystem'"
        )
    try:
        return UUID(attrs["id"])
    except ValueError:
        raise click.BadParameter(
            f"invalid filesystem id: {attrs['id']}", param_hint="'--filesystem'"
        ) from None


def build_user_data(user_data_path: str | None, ssh_key_paths: tuple[str, ...]) -> bytes:
    """Raw user-data file, or a #cloud-config carrying the given SSH keys."""
    if user_data_path:
        if ssh_key_paths:
            raise click.UsageError("cannot specify both --user-data and --ssh-authorized-key")
        return Path(user_data_path).read_bytes()

    keys = [Path(p).read_text().strip() for p in ssh_key_paths]
    document: dict = {}
    if keys:
        document["ssh_authorized_keys"] = keys
    return CLOUD_CONFIG_HEADER + yaml.safe_dump(document, default_flow_style=False).encode("utf-8")


# ── Commands ────────────────────────────────────────────────────────────────

@click.group("instances")
@click.option("-P", "--project", "project_id", type=click.UUID, default=None, help="Project ID.")
@click.pass_context
def instances_group(ctx, project_id: UUID | None):
    """Manage instances."""
    if project_id is not None:
        ctx.obj["project_id"] = project_id


@instances_group.command("create")
@click.option("--name", required=True, help="Name of the instance.")
@click.option("--type", "instance_type", default="cpu.2x", show_default=True, help="Instance type.")
@click.option("--image", default=None, help="Image URL.")
@click.option("--preemptible", is_flag=True, default=False, help="Create a preemptible instance.")
@click.option(
    "--user-data",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to cloud-init user-data.",
)
@click.option(
    "--ssh-authorized-key",
    "ssh_keys",
    type=click.Path(exists=True, dir_okay=False),
    multiple=True,
    help="Path to SSH public key (repeatable).",
)
@click.option(
    "--filesystem",
    "filesystems",
    multiple=True,
    help="Filesystem to attach, in the format 'id=<UUID>' (repeatable).",
)
@click.pass_context
def instances_create(
    ctx,
    name: str,
    instance_type: str,
    image: str | None,
    preemptible: bool,
    user_data: str | None,
    ssh_keys: tuple[str, ...],
    filesystems: tuple[str, ...],
):
    """Create an instance."""
    project_id = resolve_project_id(ctx)

    body: dict = {
        "name": name,
        "type": instance_type,
        "preemptible": preemptible,
        "userData": base64.b64encode(build_user_data(user_data, ssh_keys)).decode("ascii"),
    }
    if image:
        body["image"] = image

    filesystem_ids = [str(parse_filesystem_flag(fs)) for fs in filesystems]
    if filesystem_ids:
        body["filesystems"] = filesystem_ids

    client = ctx.obj["client"]
    client.create("/instances", body, action="create instance", project_id=project_id)
    click.echo(f"Instance created: {name}", err=True)


@instances_group.command("delete")
@click.option("--id", "instance_id", type=click.UUID, required=True, help="Instance ID.")
@click.pass_context
def instances_delete(ctx, instance_id: UUID):
    """Delete an instance."""
    project_id = resolve_project_id(ctx)
    client = ctx.obj["client"]
    client.delete(f"/instances/{instance_id}", action="delete instance", project_id=project_id)
    click.echo(f"Deleting instance with ID: {instance_id}")


@instances_group.command("list")
@click.pass_context
def instances_list(ctx):
    """List instances."""
    project_id = resolve_project_id(ctx)
    client = ctx.obj["client"]
    data = client.get("/instances", action="list instances", project_id=project_id)
    format_output(data, columns=INSTANCE_LIST_COLUMNS, fmt=ctx.obj["output_format"])


@instances_group.command("describe")
@click.option("--id", "instance_id", type=click.UUID, required=True, help="Instance ID.")
@click.pass_context
def instances_describe(ctx, instance_id: UUID):
    """Describe an instance."""
    project_id = resolve_project_id(ctx)
    client = ctx.obj["client"]
    data = client.get(f"/instances/{instance_id}", action="get instance", project_id=project_id)
    format_output(data, fmt=ctx.obj["output_format"])
