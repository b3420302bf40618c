"""Command line interface for inspecting registration drafts."""

from __future__ import annotations

import asyncio
import json

import typer

from regflow import get_draft_store
from regflow.controller import reconcile_draft
from regflow.errors import RegistrationError
from regflow.progress import ProgressProjector
from regflow.registry import all_steps
from regflow.validation import ValidationGate

app = typer.Typer(help="CLI for regflow registration drafts")

# Command groups
draft_app = typer.Typer(help="Commands for managing stored drafts")

app.add_typer(draft_app, name="draft")


@app.callback()
def main() -> None:
    """Regflow CLI entry point."""
    pass


@app.command("steps")
def steps() -> None:
    """
    List the registration steps in order.

    Example:
        regflow steps
        # Output: 1    personal    Personal information
        #         2    professional    Professional information
    """
    for step in all_steps():
        typer.echo(f"{step.order}\t{step.key.value}\t{step.title}")


@draft_app.command("list")
def draft_list() -> None:
    """
    List stored drafts with their completion percentage.

    Returns:
        Tab-separated owner IDs, percentages and last update time, or "No drafts found"

    Example:
        regflow draft list
        # Output: user-123    43%    2024-01-01 10:00:00+00:00
    """
    store = get_draft_store()
    try:
        drafts = asyncio.run(store.list_drafts())
    except RegistrationError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if not drafts:
        typer.echo("No drafts found")
        return
    projector = ProgressProjector()
    for draft in drafts:
        state = reconcile_draft(draft.owner_id, draft)
        typer.echo(f"{draft.owner_id}\t{projector.percentage(state)}%\t{draft.updated_at}")


@draft_app.command("show")
def draft_show(owner_id: str) -> None:
    """
    Show the stored draft of one owner, step by step.

    Args:
        owner_id: Owner whose draft to inspect (get from 'draft list')
    """
    store = get_draft_store()
    draft = asyncio.run(store.load_draft(owner_id))
    if draft is None:
        typer.echo("Draft not found")
        raise typer.Exit(code=1)

    state = reconcile_draft(owner_id, draft)
    report = ProgressProjector().report(state)
    typer.echo(f"Draft {owner_id}: {report.percentage}% ({report.label})")
    typer.echo(f"Current step: {state.current_step}")
    for view in report.steps:
        typer.echo(f"- {view.order} {view.key.value}: {view.status}")
        section = state.section(view.key)
        if section:
            typer.echo(f"  {json.dumps(section, ensure_ascii=False, sort_keys=True)}")


@draft_app.command("validate")
def draft_validate(
    owner_id: str,
    verify_checksum: bool = typer.Option(
        False, help="Also enforce the national ID check digit"
    ),
) -> None:
    """
    Run every step gate against a stored draft.

    Exits with code 1 when any step fails validation.

    Example:
        regflow draft validate user-123
        # Output: personal: ok
        #         contact: phone: Mobile number is required
    """
    store = get_draft_store()
    draft = asyncio.run(store.load_draft(owner_id))
    if draft is None:
        typer.echo("Draft not found")
        raise typer.Exit(code=1)

    state = reconcile_draft(owner_id, draft)
    gate = ValidationGate(verify_national_id_checksum=verify_checksum)
    failed = False
    for step in all_steps():
        result = gate.validate_step(state, step.key)
        if result.is_valid:
            typer.echo(f"{step.key.value}: ok")
            continue
        failed = True
        for field, message in result.errors.items():
            typer.secho(f"{step.key.value}: {field}: {message}", fg=typer.colors.RED)
    if failed:
        raise typer.Exit(code=1)


@draft_app.command("delete")
def draft_delete(
    owner_id: str,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete the stored draft of one owner."""
    store = get_draft_store()
    if asyncio.run(store.load_draft(owner_id)) is None:
        typer.echo("Draft not found")
        raise typer.Exit(code=1)
    if not yes:
        typer.confirm(f"Delete draft for {owner_id}?", abort=True)
    try:
        asyncio.run(store.delete_draft(owner_id))
    except RegistrationError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"Deleted draft for {owner_id}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
