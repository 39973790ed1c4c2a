"""MCP server for planner search."""
import json
import sys
from typing import Any, Dict, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from planner_search.config import get_config
from planner_search.models import EntityType, SearchScope
from planner_search.planner_store import PlannerStore, get_planner_store
from planner_search.service import SearchService


MAX_QUERY_LENGTH = 200
MAX_LIMIT = 50
SCOPES = [scope.value for scope in SearchScope]

# Global state
_search_service: Optional[SearchService] = None
_store: Optional[PlannerStore] = None
_indexes_loaded = False


def get_search_service() -> SearchService:
    global _search_service

    if _search_service is None:
        _search_service = SearchService()

    return _search_service


async def _get_store() -> PlannerStore:
    global _store

    if _store is None:
        _store = await get_planner_store(get_config().db_path)

    return _store


def configure(service: Optional[SearchService] = None, store: Optional[PlannerStore] = None) -> None:
    """Replace the service and store used by the tool handlers.

    Args:
        service: Search service to answer queries with
        store: Initialized planner store to load records from
    """
    global _search_service, _store, _indexes_loaded

    _search_service = service
    _store = store
    _indexes_loaded = False


async def load_indexes(force: bool = False) -> SearchService:
    """Load every record from the planner store into the search indexes.

    Loaded once; ``force`` reloads. If the store cannot be read the indexes
    are rebuilt empty so searches still answer.

    Args:
        force: Reload even if the indexes were loaded before

    Returns:
        The search service
    """
    global _indexes_loaded

    service = get_search_service()
    if _indexes_loaded and not force:
        return service

    records: Dict[EntityType, list] = {}
    try:
        store = await _get_store()
        for entity_type in EntityType:
            records[entity_type] = await store.load_records(entity_type)
    except Exception as e:
        print(f"[PlannerSearch] Error loading planner records: {e}", file=sys.stderr)
        records = {entity_type: [] for entity_type in EntityType}

    service.refresh_all(records)
    _indexes_loaded = True

    counts = ", ".join(f"{len(records[t])} {t.value}" for t in EntityType)
    print(f"[PlannerSearch] Indexes rebuilt ({counts})", file=sys.stderr)

    return service


def _text(data: Any) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(data, indent=2, default=str))]


def _error(message: str) -> list[TextContent]:
    return [TextContent(type="text", text=f"Error: {message}")]


def validate_search_params(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Validate the parameters of the ``search`` tool.

    Args:
        arguments: Raw tool arguments with ``q``, ``type`` and ``limit``

    Returns:
        Dict with validated ``q``, ``type`` and ``limit``

    Raises:
        ValueError: Listing every invalid parameter
    """
    errors = []

    q = arguments.get("q", "")
    if not isinstance(q, str) or len(q) < 1:
        errors.append("q: Search query is required")
    elif len(q) > MAX_QUERY_LENGTH:
        errors.append(f"q: Search query must be at most {MAX_QUERY_LENGTH} characters")

    scope = arguments.get("type") or "all"
    if scope not in SCOPES:
        errors.append(f"type: Expected one of {', '.join(SCOPES)}")

    limit = arguments.get("limit")
    if limit is None:
        limit = get_config().search.default_limit
    else:
        try:
            limit = int(limit)
        except (TypeError, ValueError, OverflowError):
            errors.append("limit: Expected an integer")
        else:
            if not 1 <= limit <= MAX_LIMIT:
                errors.append(f"limit: Must be between 1 and {MAX_LIMIT}")

    if errors:
        raise ValueError(f"Validation failed: {', '.join(errors)}")

    return {"q": q, "type": scope, "limit": limit}


async def search_tool(arguments: Dict[str, Any]) -> list[TextContent]:
    """Tool handler for search (all entities, completed tasks included)."""
    try:
        params = validate_search_params(arguments)
    except ValueError as e:
        return [TextContent(type="text", text=str(e))]

    service = await load_indexes()
    results = service.search_all(params["q"], {
        "limit": params["limit"],
        "scope": params["type"],
        "include_completed": True,
    })

    return _text(results.to_dict())


async def search_tasks_tool(arguments: Dict[str, Any]) -> list[TextContent]:
    """Tool handler for search_tasks."""
    query = arguments.get("query", "")
    service = await load_indexes()

    results = service.search_tasks(query, {
        "limit": arguments.get("limit"),
        "threshold": arguments.get("threshold"),
        "include_completed": arguments.get("include_completed", False),
    })

    if not results:
        return [TextContent(type="text", text=f"No tasks found matching query: {query}")]

    return _text([result.to_dict() for result in results])


async def quick_search_tool(query: str) -> list[TextContent]:
    """Tool handler for quick_search."""
    service = await load_indexes()
    return _text(service.quick_search(query).to_dict())


async def get_suggestions_tool(query: str) -> list[TextContent]:
    """Tool handler for get_suggestions."""
    service = await load_indexes()
    return _text(service.suggestions(query))


async def search_with_highlights_tool(arguments: Dict[str, Any]) -> list[TextContent]:
    """Tool handler for search_with_highlights."""
    scope = arguments.get("type") or "all"
    if scope not in SCOPES:
        return _error(f"'type' must be one of {', '.join(SCOPES)}")

    service = await load_indexes()
    results = service.search_with_highlights(arguments.get("query", ""), {"scope": scope})

    return _text(results.to_dict())


async def refresh_index_tool() -> list[TextContent]:
    """Tool handler for refresh_index."""
    service = await load_indexes(force=True)
    versions = {t.value: service.index(t).built_at_version for t in EntityType}
    counts = {t.value: len(service.index(t)) for t in EntityType}
    return _text({"records": counts, "versions": versions})


def create_server() -> Server:
    """Create and configure the MCP server.

    Returns:
        Configured Server instance
    """
    server = Server("planner-search")

    query_schema = {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "Search query"
            }
        },
        "required": ["query"]
    }

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return [
            Tool(
                name="search",
                description="Fuzzy search across tasks, lists and labels. Completed tasks are included. Returns the matching items per category and the total number of matches.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "q": {
                            "type": "string",
                            "description": "Search query (1-200 characters)"
                        },
                        "type": {
                            "type": "string",
                            "enum": SCOPES,
                            "description": "Category to search (default: all)"
                        },
                        "limit": {
                            "type": "integer",
                            "description": "Maximum results per category (1-50, default 20)"
                        }
                    },
                    "required": ["q"]
                }
            ),
            Tool(
                name="search_tasks",
                description="Fuzzy search tasks by name and description, with scores and match positions.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Search query"
                        },
                        "limit": {
                            "type": "integer",
                            "description": "Maximum number of results (default 20)"
                        },
                        "threshold": {
                            "type": "number",
                            "description": "Match tolerance from 0 (exact) to 1 (anything), default 0.4"
                        },
                        "include_completed": {
                            "type": "boolean",
                            "description": "Include completed tasks (default false)"
                        }
                    },
                    "required": ["query"]
                }
            ),
            Tool(
                name="quick_search",
                description="Small, strict search (5 results per category) for autocomplete.",
                inputSchema=query_schema
            ),
            Tool(
                name="get_suggestions",
                description="Suggest task, list and label names for partially typed input (at least 2 characters).",
                inputSchema=query_schema
            ),
            Tool(
                name="search_with_highlights",
                description="Search across all entities and return highlighted segments for matched task fields.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Search query"
                        },
                        "type": {
                            "type": "string",
                            "enum": SCOPES,
                            "description": "Category to search (default: all)"
                        }
                    },
                    "required": ["query"]
                }
            ),
            Tool(
                name="refresh_index",
                description="Reload tasks, lists and labels from the planner database and rebuild the search indexes.",
                inputSchema={"type": "object", "properties": {}}
            ),
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[TextContent]:
        """Handle tool calls."""
        arguments = arguments or {}

        if name == "search":
            return await search_tool(arguments)
        elif name == "refresh_index":
            return await refresh_index_tool()

        if name not in ("search_tasks", "quick_search", "get_suggestions", "search_with_highlights"):
            raise ValueError(f"Unknown tool: {name}")

        query = arguments.get("query", "")
        if not query:
            return _error("'query' parameter is required")

        if name == "search_tasks":
            return await search_tasks_tool(arguments)
        elif name == "quick_search":
            return await quick_search_tool(query)
        elif name == "get_suggestions":
            return await get_suggestions_tool(query)
        else:
            return await search_with_highlights_tool(arguments)

    return server


async def main():
    """Main entry point for the MCP server."""
    server = create_server()

    async with stdio_server() as (read_stream, write_stream):
        initialization_options = server.create_initialization_options()
        await server.run(read_stream, write_stream, initialization_options)
