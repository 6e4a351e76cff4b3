"""Project commands: create, delete, list, describe."""

from __future__ import annotations

from uuid import UUID

import click

from ..output import format_output

# Columns for table display of project listings
PROJECT_LIST_COLUMNS = [
    ("id", "ID"),
    ("name", "NAME"),
]


def resolve_project_id(ctx: click.Context) -> UUID:
    """Resolve the project for project-scoped commands.

    Priority: -P/--project on the resource group > FLUIDCTL_PROJECT /
    defaults.project in config > error.
    """
    explicit = ctx.obj.get("project_id")
    if explicit is not None:
        return explicit

    configured = ctx.obj["config"].project
    if configured:
        try:
            return UUID(configured)
        except ValueError:
            raise click.BadParameter(
                f"invalid project ID in config: {configured}", param_hint="'--project'"
            ) from None

    raise click.UsageError(
        "No project specified. Pass -P/--project or set "
        "FLUIDCTL_PROJECT / defaults.project in config."
    )


@click.group("projects")
def projects_group():
    """Manage projects."""
    pass


@projects_group.command("create")
@click.option("--name", required=True, help="Name of the project.")
@click.pass_context
def projects_create(ctx, name: str):
    """Create a new project."""
    client = ctx.obj["client"]
    client.create("/projects", {"name": name}, action="create project")
    click.echo(f"Project created: {name}", err=True)


@projects_group.command("delete")
@click.option("--id", "project_id", type=click.UUID, required=True, help="Project ID.")
@click.pass_context
def projects_delete(ctx, project_id: UUID):
    """Delete a project."""
    client = ctx.obj["client"]
    client.delete(f"/projects/{project_id}", action="delete project")
    click.echo(f"Deleting project with ID: {project_id}")


@projects_group.command("list")
@click.pass_context
def projects_list(ctx):
    """List all projects."""
    client = ctx.obj["client"]
    data = client.get("/projects", action="list projects")
    format_output(data, columns=PROJECT_LIST_COLUMNS, fmt=ctx.obj["output_format"])


@projects_group.command("describe")
@click.option("--id", "project_id", type=click.UUID, required=True, help="Project ID.")
@click.pass_context
def projects_describe(ctx, project_id: UUID):
    """Get details of a project."""
    client = ctx.obj["client"]
    data = client.get(f"/projects/{project_id}", action="get project")
    format_output(data, fmt=ctx.obj["output_format"])
