"""CLI for reading and editing Dynalist lists (and running the MCP server)."""

import asyncio
import json
from collections.abc import Coroutine
from typing import Annotated, Any, TypeVar

import typer
from loguru import logger

from dynalist_tree.api import DynalistApi
from dynalist_tree.core.tree.markdown import render_tree_as_markdown
from dynalist_tree.errors import DynalistError
from dynalist_tree.logging_config import configure_logging
from dynalist_tree.models.changes import RestructureMove, parse_list
from dynalist_tree.service import DynalistService
from dynalist_tree.store import RemoteDocumentStore

T = TypeVar("T")

app = typer.Typer(help="Dynalist tree: batch-edit your Dynalist lists.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _build_service() -> DynalistService:
    try:
        api = DynalistApi()
    except RuntimeError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e
    return DynalistService(RemoteDocumentStore(api))


def _run(operation: Coroutine[Any, Any, T]) -> T:
    """Run one service coroutine, turning domain errors into exit code 1."""
    try:
        return asyncio.run(operation)
    except DynalistError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e


@app.command(name="lists")
def lists_cmd(
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List all documents and folders."""
    files = _run(_build_service().list_lists())
    if output_json:
        data = [{"id": f.id, "title": f.title, "type": f.type} for f in files]
        typer.echo(json.dumps(data, indent=2))
        return
    for f in files:
        marker = "/" if f.type == "folder" else ""
        typer.echo(f"  {f.title}{marker}  id={f.id}")


@app.command()
def create(
    name: str = typer.Argument(..., help="Title of the new list"),
    folder: Annotated[
        str, typer.Option("--folder", "-f", help="Folder id (default: root folder)")
    ] = "root",
) -> None:
    """Create a new list and print its id."""
    typer.echo(_run(_build_service().create_list(name, folder)))


@app.command()
def read(
    list_id: str = typer.Argument(..., help="List (document) id"),
    max_depth: Annotated[
        int | None, typer.Option("--max-depth", "-m", help="Max depth levels")
    ] = None,
    no_notes: bool = typer.Option(False, "--no-notes", help="Omit notes"),
) -> None:
    """Print a list as markdown."""
    tree = _run(_build_service().get_items_with_tree(list_id, max_depth=max_depth))
    typer.echo(render_tree_as_markdown(tree, include_notes=not no_notes), nl=False)


@app.command()
def add(
    list_id: str = typer.Argument(..., help="List (document) id"),
    items: list[str] = typer.Argument(..., help="Item contents, in order"),
    parent: Annotated[
        str, typer.Option("--parent", "-p", help="Parent item id (default: top level)")
    ] = "root",
    top: bool = typer.Option(False, "--top", help="Insert above existing children"),
) -> None:
    """Add items in one request and print their ids."""
    ids = _run(
        _build_service().add_sub_items(
            list_id, parent, items, position="top" if top else "bottom"
        )
    )
    for node_id in ids:
        typer.echo(node_id)


@app.command()
def move(
    list_id: str = typer.Argument(..., help="List (document) id"),
    node_id: str = typer.Argument(..., help="Item to move"),
    position: str = typer.Argument(
        "bottom", help='"top", "bottom", an index, "before:<id>" or "after:<id>"'
    ),
    parent: Annotated[
        str | None, typer.Option("--parent", "-p", help="New parent id")
    ] = None,
) -> None:
    """Move one item."""
    _run(_build_service().move_item(list_id, node_id, position, parent_id=parent))


@app.command()
def restructure(
    list_id: str = typer.Argument(..., help="List (document) id"),
    moves_json: str = typer.Argument(
        ..., help='JSON list of {"node_id", "new_index", "new_parent"} objects'
    ),
) -> None:
    """Apply several moves in one request."""
    try:
        moves = parse_list(json.loads(moves_json), RestructureMove.from_dict, "moves")
    except (json.JSONDecodeError, DynalistError) as e:
        logger.error("Invalid moves JSON: {}", e)
        raise typer.Exit(1) from e
    count = _run(_build_service().restructure_items(list_id, moves))
    typer.echo(f"Moved {count} items")


@app.command()
def check(
    list_id: str = typer.Argument(..., help="List (document) id"),
    node_ids: list[str] = typer.Argument(..., help="Items to check"),
    uncheck: bool = typer.Option(False, "--uncheck", help="Uncheck instead"),
) -> None:
    """Check (or uncheck) items."""
    count = _run(_build_service().check_items(list_id, node_ids, not uncheck))
    typer.echo(f"{'Unchecked' if uncheck else 'Checked'} {count} items")


@app.command()
def delete(
    list_id: str = typer.Argument(..., help="List (document) id"),
    node_ids: list[str] = typer.Argument(..., help="Items to delete"),
) -> None:
    """Delete items with their children."""
    count = _run(_build_service().delete_items(list_id, node_ids))
    typer.echo(f"Deleted {count} items")


@app.command()
def clear(list_id: str = typer.Argument(..., help="List (document) id")) -> None:
    """Delete every checked top-level item."""
    count = _run(_build_service().clear_list(list_id))
    typer.echo(f"Deleted {count} checked items")


@app.command()
def serve() -> None:
    """Run the MCP server (stdio transport)."""
    from dynalist_tree.mcp.server import mcp_server

    mcp_server.run(transport="stdio")
