"""Nodebox CLI - Main commands."""
import asyncio
import json
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="nodebox",
    help="Nodebox repository tools",
    add_completion=False
)
console = Console()

SMART_FOLDER_UUID = "--cli-smart-folder--"


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def load_json(path: Path):
    try:
        return json.loads(path.read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Cannot read {path}: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def evaluate(
    smart_folder: Path = typer.Argument(..., help="Smart folder definition (JSON)"),
    nodes: Path = typer.Argument(..., help="JSON list of node records"),
    columns: List[str] = typer.Option(
        ["uuid", "title", "mimetype"], "--column", "-c", help="Record fields to show"
    ),
):
    """Evaluate a smart folder definition against a dump of node records."""
    from nodebox.core.exceptions import NodeboxError
    from nodebox.core.nodes import NodeFactory, SMART_FOLDER_MIMETYPE
    from nodebox.core.nodes.filters import get_field
    from nodebox.core.services import NodeService, NodeServiceContext
    from nodebox.core.storage import InMemoryNodeRepository, InMemoryStorageProvider

    definition = load_json(smart_folder)
    records = load_json(nodes)
    if not isinstance(records, list):
        console.print("[red]Node dump must be a JSON list[/red]")
        raise typer.Exit(1)

    async def do_evaluate():
        repository = InMemoryNodeRepository()
        for record in records:
            await repository.add(NodeFactory.from_dict(record))

        folder = NodeFactory.from_dict({
            **definition,
            'uuid': SMART_FOLDER_UUID,
            'mimetype': SMART_FOLDER_MIMETYPE,
        })
        NodeFactory.validate(folder)
        await repository.add(folder)

        service = NodeService(NodeServiceContext(repository, InMemoryStorageProvider()))
        return await service.evaluate(
            SMART_FOLDER_UUID,
            [['uuid', '!=', SMART_FOLDER_UUID]],
        )

    try:
        evaluation = run_async(do_evaluate())
    except NodeboxError as e:
        console.print(f"[red]{e.error_code}: {e.message}[/red]")
        raise typer.Exit(1)

    table = Table(title=definition.get('title') or smart_folder.stem)
    for column in columns:
        table.add_column(column, style="dim" if column == "uuid" else None)
    for node in evaluation.records:
        record = node.to_dict()
        table.add_row(*[str(get_field(record, c, "")) for c in columns])
    console.print(table)
    console.print(f"{len(evaluation.records)} matching nodes")

    if evaluation.aggregations:
        aggregations = Table(title="Aggregations")
        aggregations.add_column("Title", style="cyan")
        aggregations.add_column("Value", justify="right")
        for result in evaluation.aggregations:
            aggregations.add_row(result.title, str(result.value))
        console.print(aggregations)


@app.command()
def actions():
    """List the built-in actions."""
    from nodebox.core.actions import BUILTIN_ACTIONS

    table = Table()
    table.add_column("Id", style="cyan")
    table.add_column("Title")
    table.add_column("Params")
    table.add_column("Description", style="dim")

    for action in BUILTIN_ACTIONS.values():
        table.add_row(action.uuid, action.title, ", ".join(action.params), action.description)

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
