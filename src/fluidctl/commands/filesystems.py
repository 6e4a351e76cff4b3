"""Filesystem commands: create, delete, list, describe."""

from __future__ import annotations

from uuid import UUID

import click

from ..output import format_output
from .projects import resolve_project_id

FILESYSTEM_LIST_COLUMNS = [
    ("id", "ID"),
    ("name", "NAME"),
    ("size", "SIZE"),
    ("state", "STATE"),
]


@click.group("filesystems")
@click.option("-P", "--project", "project_id", type=click.UUID, default=None, help="Project ID.")
@click.pass_context
def filesystems_group(ctx, project_id: UUID | None):
    """Manage filesystems."""
    if project_id is not None:
        ctx.obj["project_id"] = project_id


@filesystems_group.command("create")
@click.option("--name", required=True, help="Name of the filesystem.")
@click.option("--size", default="1024Gi", show_default=True, help="Size of the filesystem.")
@click.pass_context
def filesystems_create(ctx, name: str, size: str):
    """Create a new filesystem."""
    project_id = resolve_project_id(ctx)
    client = ctx.obj["client"]
    client.create(
        "/filesystems",
        {"name": name, "size": size},
        action="create filesystem",
        project_id=project_id,
    )
    click.echo(f"Filesystem created: {name}", err=True)


@filesystems_group.command("delete")
@click.option("--id", "filesystem_id", type=click.UUID, required=True, help="Filesystem ID.")
@click.pass_context
def filesystems_delete(ctx, filesystem_id: UUID):
    """Delete a filesystem."""
    project_id = resolve_project_id(ctx)
    client = ctx.obj["client"]
    client.delete(
        f"/filesystems/{filesystem_id}", action="delete filesystem", project_id=project_id,
    )
    click.echo(f"Deleting filesystem with ID: {filesystem_id}")


@filesystems_group.command("list")
@click.pass_context
def filesystems_list(ctx):
    """List all filesystems."""
    project_id = resolve_project_id(ctx)
    client = ctx.obj["client"]
    data = client.get("/filesystems", action="list filesystems", project_id=project_id)
    format_output(data, columns=FILESYSTEM_LIST_COLUMNS, fmt=ctx.obj["output_format"])


@filesystems_group.command("describe")
@click.option("--id", "filesystem_id", type=click.UUID, required=True, help="Filesystem ID.")
@click.pass_context
def filesystems_describe(ctx, filesystem_id: UUID):
    """Get details of a filesystem."""
    project_id = resolve_project_id(ctx)
    client = ctx.obj["client"]
    data = client.get(
        f"/filesystems/{filesystem_id}", action="get filesystem", project_id=project_id,
    )
    format_output(data, fmt=ctx.obj["output_format"])
