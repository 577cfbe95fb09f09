"""MCP server exposing Dynalist list and tree editing tools."""

from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from dynalist_tree.api import DynalistApi
from dynalist_tree.core.tree.markdown import render_tree_as_markdown
from dynalist_tree.errors import DynalistError
from dynalist_tree.models.changes import (
    HierarchyNode,
    ItemEdit,
    NewItem,
    RestructureMove,
    parse_list,
)
from dynalist_tree.models.node import ListItem, Node, TreeItem
from dynalist_tree.service import DynalistService
from dynalist_tree.store import RemoteDocumentStore


def _build_url(document_id: str, node_id: str | None = None) -> str:
    url = f"https://dynalist.io/d/{document_id}"
    if node_id and node_id != "root":
        url += f"#z={node_id}"
    return url


def _item_dict(item: ListItem | Node) -> dict[str, Any]:
    return {"id": item.id, "content": item.content, "note": item.note, "checked": item.checked}


def _tree_dict(item: TreeItem) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "id": item.id,
        "content": item.content,
        "note": item.note,
        "checked": item.checked,
        "depth": item.depth,
        "child_count": item.child_count,
    }
    if item.children:
        entry["children"] = [_tree_dict(c) for c in item.children]
    return entry


async def _guarded(operation: Awaitable[dict[str, Any]]) -> dict[str, Any]:
    try:
        return await operation
    except DynalistError as e:
        logger.warning("Tool call failed: {}", e)
        return {"error": str(e)}


# --- Core functions (testable without MCP context) ---


async def dynalist_list_lists(service: DynalistService) -> dict[str, Any]:
    """List all documents and folders."""

    async def run() -> dict[str, Any]:
        files = await service.list_lists()
        return {
            "lists": [
                {"id": f.id, "title": f.title, "type": f.type, "url": _build_url(f.id)}
                for f in files
            ],
            "count": len(files),
        }

    return await _guarded(run())


async def dynalist_create_list(
    service: DynalistService, *, name: str, parent_id: str = "root"
) -> dict[str, Any]:
    """Create a new list (document) inside a folder."""

    async def run() -> dict[str, Any]:
        list_id = await service.create_list(name, parent_id)
        return {"success": True, "list_id": list_id, "url": _build_url(list_id)}

    return await _guarded(run())


async def dynalist_rename_list(
    service: DynalistService, *, list_id: str, name: str
) -> dict[str, Any]:
    """Rename a list."""

    async def run() -> dict[str, Any]:
        await service.rename_list(list_id, name)
        return {"success": True, "list_id": list_id}

    return await _guarded(run())


async def dynalist_get_items(service: DynalistService, *, list_id: str) -> dict[str, Any]:
    """Top-level items of a list."""

    async def run() -> dict[str, Any]:
        items = await service.get_items(list_id)
        return {"items": [_item_dict(i) for i in items], "count": len(items)}

    return await _guarded(run())


async def dynalist_read_list(
    service: DynalistService,
    *,
    list_id: str,
    max_depth: int | None = None,
    output_format: str = "markdown",
    include_notes: bool = True,
) -> dict[str, Any]:
    """Read a whole list as markdown or structured JSON.

    Args:
        list_id: List (document) id.
        max_depth: Max depth levels to include (None = unlimited).
        output_format: "markdown" or "json".
        include_notes: Include node notes in markdown output.
    """

    async def run() -> dict[str, Any]:
        tree = await service.get_items_with_tree(list_id, max_depth=max_depth)
        if output_format == "markdown":
            return {
                "content": render_tree_as_markdown(tree, include_notes=include_notes),
                "url": _build_url(list_id),
            }
        return {"items": [_tree_dict(t) for t in tree], "url": _build_url(list_id)}

    return await _guarded(run())


async def dynalist_add_items(
    service: DynalistService,
    *,
    list_id: str,
    items: list[str | dict[str, Any]],
    parent_id: str = "root",
    position: str = "bottom",
) -> dict[str, Any]:
    """Add items (strings or {"content", "note", "checked", ...}) under a parent."""

    async def run() -> dict[str, Any]:
        ids = await service.add_sub_items(
            list_id,
            parent_id,
            parse_list(items, NewItem.from_value, "items"),
            position=position,  # type: ignore[arg-type]
        )
        return {"success": True, "ids": ids, "count": len(ids)}

    return await _guarded(run())


async def dynalist_move_item(
    service: DynalistService,
    *,
    list_id: str,
    node_id: str,
    position: str | int = "bottom",
    parent_id: str | None = None,
) -> dict[str, Any]:
    """Move an item ("top", "bottom", index, "before:<id>", "after:<id>")."""

    async def run() -> dict[str, Any]:
        await service.move_item(list_id, node_id, position, parent_id=parent_id)
        return {"success": True, "node_id": node_id}

    return await _guarded(run())


async def dynalist_restructure_items(
    service: DynalistService, *, list_id: str, moves: list[dict[str, Any]]
) -> dict[str, Any]:
    """Apply several moves ({"node_id", "new_index", "new_parent"}) in one batch."""

    async def run() -> dict[str, Any]:
        count = await service.restructure_items(
            list_id,
            parse_list(moves, RestructureMove.from_dict, "moves"),
        )
        return {"success": True, "count": count}

    return await _guarded(run())


async def dynalist_edit_items(
    service: DynalistService, *, list_id: str, edits: list[dict[str, Any]]
) -> dict[str, Any]:
    """Edit items ({"node_id", "content", "note", "checked", ...}) in one batch."""

    async def run() -> dict[str, Any]:
        count = await service.edit_items(list_id, parse_list(edits, ItemEdit.from_dict, "edits"))
        return {"success": True, "count": count}

    return await _guarded(run())


async def dynalist_check_items(
    service: DynalistService, *, list_id: str, node_ids: list[str], checked: bool = True
) -> dict[str, Any]:
    """Check or uncheck items."""

    async def run() -> dict[str, Any]:
        count = await service.check_items(list_id, node_ids, checked)
        return {"success": True, "count": count}

    return await _guarded(run())


async def dynalist_delete_items(
    service: DynalistService, *, list_id: str, node_ids: list[str]
) -> dict[str, Any]:
    """Delete items and their subtrees."""

    async def run() -> dict[str, Any]:
        count = await service.delete_items(list_id, node_ids)
        return {"success": True, "count": count}

    return await _guarded(run())


async def dynalist_clear_list(service: DynalistService, *, list_id: str) -> dict[str, Any]:
    """Delete all checked top-level items."""

    async def run() -> dict[str, Any]:
        return {"success": True, "deleted": await service.clear_list(list_id)}

    return await _guarded(run())


async def dynalist_create_hierarchy(
    service: DynalistService, *, list_id: str, nodes: list[dict[str, Any]]
) -> dict[str, Any]:
    """Create nested items ({"content", "children": [...]}) at the bottom of a list."""

    async def run() -> dict[str, Any]:
        ids = await service.create_list_hierarchically(
            list_id, parse_list(nodes, HierarchyNode.from_dict, "nodes")
        )
        return {"success": True, "root_ids": ids}

    return await _guarded(run())


async def dynalist_get_ancestors(
    service: DynalistService, *, list_id: str, node_id: str
) -> dict[str, Any]:
    """Ancestors of an item, topmost first."""

    async def run() -> dict[str, Any]:
        nodes = await service.get_item_ancestors(list_id, node_id)
        return {
            "ancestors": [_item_dict(n) for n in nodes],
            "breadcrumbs": " > ".join(n.content[:40] for n in nodes),
        }

    return await _guarded(run())


async def dynalist_get_descendants(
    service: DynalistService, *, list_id: str, node_id: str
) -> dict[str, Any]:
    """All items below a node, parents before children."""

    async def run() -> dict[str, Any]:
        nodes = await service.get_item_descendants(list_id, node_id)
        return {"descendants": [_item_dict(n) for n in nodes], "count": len(nodes)}

    return await _guarded(run())


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    service: DynalistService


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Build the API client and service once per server."""
    service = DynalistService(RemoteDocumentStore(DynalistApi()))
    logger.info("Dynalist tree server ready")
    yield ServerContext(service=service)


mcp_server = FastMCP(
    "dynalist-tree",
    instructions="""\
Dynalist is a tree-structured outliner. Each list is a document whose top-level
items are the children of its root node.

## Workflow
1. Use dynalist_list_lists_tool to find list ids.
2. Use dynalist_read_list_tool to see the current tree and item ids.
3. Batch edits: pass several items/moves/ids per call instead of many calls.

## Positions
- Inserts: "top" or "bottom".
- Moves: "top", "bottom", an index, "before:<id>" or "after:<id>".
""",
    lifespan=server_lifespan,
)


def _service(mcp_ctx: Context) -> DynalistService:
    return mcp_ctx.request_context.lifespan_context.service  # type: ignore[no-any-return]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def dynalist_list_lists_tool(ctx: Context) -> dict[str, Any]:
    """List all Dynalist documents and folders with their ids."""
    return await dynalist_list_lists(_service(ctx))


@mcp_server.tool()
async def dynalist_create_list_tool(ctx: Context, name: str, parent_id: str = "root") -> dict[str, Any]:
    """Create a new list (document).

    Args:
        name: Title, 1-200 characters.
        parent_id: Folder id (default: root folder).
    """
    return await dynalist_create_list(_service(ctx), name=name, parent_id=parent_id)


@mcp_server.tool()
async def dynalist_rename_list_tool(ctx: Context, list_id: str, name: str) -> dict[str, Any]:
    """Rename a list.

    Args:
        list_id: List id.
        name: New title, 1-200 characters.
    """
    return await dynalist_rename_list(_service(ctx), list_id=list_id, name=name)


@mcp_server.tool()
async def dynalist_get_items_tool(ctx: Context, list_id: str) -> dict[str, Any]:
    """Get the top-level items of a list with their checked state."""
    return await dynalist_get_items(_service(ctx), list_id=list_id)


@mcp_server.tool()
async def dynalist_read_list_tool(
    ctx: Context,
    list_id: str,
    max_depth: int | None = None,
    output_format: str = "markdown",
    include_notes: bool = True,
) -> dict[str, Any]:
    """Read a whole list as a tree.

    Args:
        list_id: List id.
        max_depth: Max depth levels (None = unlimited).
        output_format: "markdown" (human-readable) or "json" (structured, with ids).
        include_notes: Include node notes in markdown output.
    """
    return await dynalist_read_list(
        _service(ctx),
        list_id=list_id,
        max_depth=max_depth,
        output_format=output_format,
        include_notes=include_notes,
    )


@mcp_server.tool()
async def dynalist_add_items_tool(
    ctx: Context,
    list_id: str,
    items: list[str | dict[str, Any]],
    position: str = "bottom",
) -> dict[str, Any]:
    """Add top-level items in one request.

    Args:
        list_id: List id.
        items: Strings, or objects with content/note/checked/checkbox/heading/color.
        position: "top" or "bottom".
    """
    return await dynalist_add_items(
        _service(ctx), list_id=list_id, items=items, position=position
    )


@mcp_server.tool()
async def dynalist_add_sub_items_tool(
    ctx: Context,
    list_id: str,
    parent_id: str,
    items: list[str | dict[str, Any]],
    position: str = "bottom",
) -> dict[str, Any]:
    """Add children under an existing item in one request.

    Args:
        list_id: List id.
        parent_id: Parent item id.
        items: Strings, or objects with content/note/checked/checkbox/heading/color.
        position: "top" or "bottom".
    """
    return await dynalist_add_items(
        _service(ctx), list_id=list_id, items=items, parent_id=parent_id, position=position
    )


@mcp_server.tool()
async def dynalist_move_item_tool(
    ctx: Context,
    list_id: str,
    node_id: str,
    position: str | int = "bottom",
    parent_id: str | None = None,
) -> dict[str, Any]:
    """Move an item within its parent, or under another parent.

    Args:
        list_id: List id.
        node_id: Item to move.
        position: "top", "bottom", an index, "before:<id>" or "after:<id>".
        parent_id: New parent id ("root" for top level); omit to keep the current parent.
    """
    return await dynalist_move_item(
        _service(ctx), list_id=list_id, node_id=node_id, position=position, parent_id=parent_id
    )


@mcp_server.tool()
async def dynalist_restructure_items_tool(
    ctx: Context, list_id: str, moves: list[dict[str, Any]]
) -> dict[str, Any]:
    """Move several items in one batch. Nothing is applied if any id is unknown.

    Args:
        list_id: List id.
        moves: Objects with node_id, new_index and optional new_parent (default root).
    """
    return await dynalist_restructure_items(_service(ctx), list_id=list_id, moves=moves)


@mcp_server.tool()
async def dynalist_edit_items_tool(
    ctx: Context, list_id: str, edits: list[dict[str, Any]]
) -> dict[str, Any]:
    """Edit several items in one batch.

    Args:
        list_id: List id.
        edits: Objects with node_id and any of content/note/checked/checkbox/heading/color.
    """
    return await dynalist_edit_items(_service(ctx), list_id=list_id, edits=edits)


@mcp_server.tool()
async def dynalist_check_items_tool(
    ctx: Context, list_id: str, node_ids: list[str], checked: bool = True
) -> dict[str, Any]:
    """Check or uncheck several items."""
    return await dynalist_check_items(
        _service(ctx), list_id=list_id, node_ids=node_ids, checked=checked
    )


@mcp_server.tool()
async def dynalist_delete_items_tool(
    ctx: Context, list_id: str, node_ids: list[str]
) -> dict[str, Any]:
    """Delete several items (with their children)."""
    return await dynalist_delete_items(_service(ctx), list_id=list_id, node_ids=node_ids)


@mcp_server.tool()
async def dynalist_clear_list_tool(ctx: Context, list_id: str) -> dict[str, Any]:
    """Delete every checked top-level item of a list."""
    return await dynalist_clear_list(_service(ctx), list_id=list_id)


@mcp_server.tool()
async def dynalist_create_hierarchy_tool(
    ctx: Context, list_id: str, nodes: list[dict[str, Any]]
) -> dict[str, Any]:
    """Create a nested tree of items at the bottom of a list in two requests.

    Args:
        list_id: List id.
        nodes: Objects with content, optional note/checked, and children (same shape).
    """
    return await dynalist_create_hierarchy(_service(ctx), list_id=list_id, nodes=nodes)


@mcp_server.tool()
async def dynalist_get_ancestors_tool(ctx: Context, list_id: str, node_id: str) -> dict[str, Any]:
    """Get the ancestors of an item, topmost first."""
    return await dynalist_get_ancestors(_service(ctx), list_id=list_id, node_id=node_id)


@mcp_server.tool()
async def dynalist_get_descendants_tool(
    ctx: Context, list_id: str, node_id: str
) -> dict[str, Any]:
    """Get every item below a node, parents before children."""
    return await dynalist_get_descendants(_service(ctx), list_id=list_id, node_id=node_id)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from dynalist_tree.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
