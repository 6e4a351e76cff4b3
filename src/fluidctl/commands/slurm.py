"""Slurm commands: clusters list."""

from __future__ import annotations

from uuid import UUID

import click

from ..output import format_output
from .projects import resolve_project_id

CLUSTER_LIST_COLUMNS = [
    ("id", "ID"),
    ("name", "NAME"),
    ("state", "STATE"),
]


@click.group("slurm")
@click.option("-P", "--project", "project_id", type=click.UUID, default=None, help="Project ID.")
@click.pass_context
def slurm_group(ctx, project_id: UUID | None):
    """Manage slurm."""
    if project_id is not None:
        ctx.obj["project_id"] = project_id


@slurm_group.group("clusters")
def clusters_group():
    """Manage slurm clusters."""
    pass


@clusters_group.command("list")
@click.pass_context
def clusters_list(ctx):
    """List slurm clusters."""
    project_id = resolve_project_id(ctx)
    client = ctx.obj["client"]
    data = client.get("/slurm/clusters", action="list slurm clusters", project_id=project_id)
    format_output(data, columns=CLUSTER_LIST_COLUMNS, fmt=ctx.obj["output_format"])
