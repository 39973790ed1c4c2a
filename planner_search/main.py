"""Main entry point for the planner search MCP server."""
import asyncio

from planner_search.server import main as serve


def main():
    asyncio.run(serve())


if __name__ == "__main__":
    main()
