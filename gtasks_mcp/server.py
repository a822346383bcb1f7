"""
Google Tasks MCP Server

Exposes Google Tasks task lists and tasks to MCP clients as tools and
readable resources over stdio.
"""

import argparse
import logging
import sys
from typing import Optional, List

from fastmcp import FastMCP
from fastmcp.exceptions import ResourceError, ToolError
from fastmcp.server.middleware import Middleware
from mcp.shared.exceptions import McpError

from .auth_flow import run_auth_flow
from .config import LOG_FORMAT, SERVER_NAME, SERVER_VERSION, ServerConfig
from .context import ServerContext
from .credentials import CredentialStore, TokenRefreshMonitor
from .dispatcher import RequestDispatcher
from .errors import CredentialsNotFoundError, error_text
from .gateway import TasksGateway, build_tasks_service
from .models import JSON_MIME_TYPE
from .oauth import OAuthClient
from .resources import ResourceReader, TEXT_MIME_TYPE

logger = logging.getLogger(__name__)

# ==========================================
# BOOTSTRAP
# ==========================================


def build_context(config: ServerConfig) -> ServerContext:
    """Load credentials, wire the refresh monitor and build the gateway.

    Raises CredentialsNotFoundError when no credentials are available.
    """
    store = CredentialStore.from_config(config)
    creds = store.load()

    oauth_client = OAuthClient.from_config(config)
    oauth_client.set_credentials(creds)
    TokenRefreshMonitor(oauth_client, store).attach()

    service = build_tasks_service(oauth_client)
    gateway = TasksGateway(service, http_factory=oauth_client.authorized_http)
    return ServerContext(gateway=gateway)


# ==========================================
# MCP SERVER IMPLEMENTATION
# ==========================================


class EntityResourceListing(Middleware):
    """Appends the user's task lists and tasks to resources/list"""

    def __init__(self, reader: ResourceReader):
        self.reader = reader

    async def on_list_resources(self, context, call_next):
        listed = list(await call_next(context))
        return listed + await self.reader.list_resources()


def create_server(context: ServerContext) -> FastMCP:
    """Register every tool and resource against ``context``"""
    dispatcher = RequestDispatcher(context)
    reader = ResourceReader(context)
    mcp = FastMCP(SERVER_NAME, instructions="MCP Server for Google Tasks API", version=SERVER_VERSION,
                  middleware=[EntityResourceListing(reader)])

    async def call(operation: str, **arguments) -> List:
        try:
            envelope = await dispatcher.dispatch(operation, arguments)
        except McpError as e:
            raise ToolError(error_text(e)) from e
        return envelope.to_content()

    async def read(uri: str) -> str:
        try:
            return await reader.read_text(uri)
        except McpError as e:
            raise ResourceError(error_text(e)) from e

    # --- Task List Tools ---

    @mcp.tool(name="tasklist.list", description="List all task lists in Google Tasks")
    async def tasklist_list(maxResults: Optional[int] = None):
        return await call("tasklist.list", maxResults=maxResults)

    @mcp.tool(name="tasklist.get", description="Get a task list by ID")
    async def tasklist_get(id: str):
        return await call("tasklist.get", id=id)

    @mcp.tool(name="tasklist.create", description="Create a new task list")
    async def tasklist_create(title: str):
        return await call("tasklist.create", title=title)

    @mcp.tool(name="tasklist.update", description="Update a task list")
    async def tasklist_update(id: str, title: str):
        return await call("tasklist.update", id=id, title=title)

    @mcp.tool(
        name="tasklist.delete",
        description="""Delete a task list.

    ⚠️ WARNING: This permanently deletes the task list and all tasks within it."""
    )
    async def tasklist_delete(id: str):
        return await call("tasklist.delete", id=id)

    # --- Task Tools ---

    @mcp.tool(
        name="task.search",
        description="""Search for tasks in Google Tasks by title or notes.

    Matching is a case-insensitive substring match. Searches every task list
    unless taskListId is given."""
    )
    async def task_search(query: str, taskListId: Optional[str] = None):
        return await call("task.search", query=query, taskListId=taskListId)

    @mcp.tool(
        name="task.list",
        description="""List tasks in Google Tasks.

    With taskListId, lists that task list; otherwise lists tasks across all
    task lists. Only the first 100 tasks of each list are returned."""
    )
    async def task_list(taskListId: Optional[str] = None):
        return await call("task.list", taskListId=taskListId)

    @mcp.tool(name="task.get", description="Get a task by ID")
    async def task_get(id: str, taskListId: Optional[str] = None):
        return await call("task.get", id=id, taskListId=taskListId)

    @mcp.tool(
        name="task.create",
        description="""Create a new task in Google Tasks.

    taskListId defaults to @default. due must be in RFC 3339 format.
    status is needsAction or completed. parent creates a subtask."""
    )
    async def task_create(
        title: str,
        taskListId: Optional[str] = None,
        notes: Optional[str] = None,
        due: Optional[str] = None,
        status: Optional[str] = None,
        parent: Optional[str] = None,
    ):
        return await call("task.create", title=title, taskListId=taskListId, notes=notes,
                          due=due, status=status, parent=parent)

    @mcp.tool(
        name="task.update",
        description="""Update a task in Google Tasks.

    Only the fields given are changed."""
    )
    async def task_update(
        id: str,
        taskListId: Optional[str] = None,
        title: Optional[str] = None,
        notes: Optional[str] = None,
        status: Optional[str] = None,
        due: Optional[str] = None,
        parent: Optional[str] = None,
    ):
        return await call("task.update", id=id, taskListId=taskListId, title=title, notes=notes,
                          status=status, due=due, parent=parent)

    @mcp.tool(name="task.move", description="Move a task in Google Tasks, changing its parent or position")
    async def task_move(id: str, taskListId: Optional[str] = None, parent: Optional[str] = None,
                        previous: Optional[str] = None):
        return await call("task.move", id=id, taskListId=taskListId, parent=parent, previous=previous)

    @mcp.tool(
        name="task.delete",
        description="""Delete a task in Google Tasks.

    ⚠️ WARNING: This permanently removes the task."""
    )
    async def task_delete(id: str, taskListId: Optional[str] = None):
        return await call("task.delete", id=id, taskListId=taskListId)

    @mcp.tool(name="task.clear", description="Clear completed tasks from a Google Tasks task list")
    async def task_clear(taskListId: Optional[str] = None):
        return await call("task.clear", taskListId=taskListId)

    # --- Resources ---

    @mcp.resource("gtasklists:///", name="task-lists", mime_type=JSON_MIME_TYPE,
                  description="All task lists")
    async def all_task_lists() -> str:
        return await read("gtasklists:///")

    @mcp.resource("gtasklists:///{tasklist_id}", mime_type=TEXT_MIME_TYPE, description="A task list")
    async def one_task_list(tasklist_id: str) -> str:
        return await read(f"gtasklists:///{tasklist_id}")

    @mcp.resource("gtasks:///", name="tasks", mime_type=JSON_MIME_TYPE,
                  description="All tasks across task lists")
    async def all_tasks() -> str:
        return await read("gtasks:///")

    @mcp.resource("gtasks:///{task_id}", mime_type=TEXT_MIME_TYPE,
                  description="A task, looked up across task lists")
    async def one_task(task_id: str) -> str:
        return await read(f"gtasks:///{task_id}")

    @mcp.resource("gtasks:///{tasklist_id}/tasks/{task_id}", mime_type=TEXT_MIME_TYPE,
                  description="A task within a named task list")
    async def one_list_task(tasklist_id: str, task_id: str) -> str:
        return await read(f"gtasks:///{tasklist_id}/tasks/{task_id}")

    return mcp


# ==========================================
# MAIN ENTRY POINT
# ==========================================


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="gtasks-mcp", description="Google Tasks MCP server")
    parser.add_argument("command", nargs="?", choices=["serve", "auth"], default="serve",
                        help="'serve' runs the stdio server (default); 'auth' obtains tokens via the browser")
    args = parser.parse_args(argv)

    config = ServerConfig.from_env()
    logging.basicConfig(stream=sys.stderr, level=config.log_level, format=LOG_FORMAT)

    if args.command == "auth":
        sys.exit(run_auth_flow(config))

    try:
        context = build_context(config)
    except CredentialsNotFoundError as e:
        logger.error(str(e))
        print(f"""
Google Tasks MCP Server Setup Required:

Either set ACCESS_TOKEN and REFRESH_TOKEN in the environment (or .env),
or run `gtasks-mcp auth` to authorize and save tokens to:
    {config.credentials_path}
        """, file=sys.stderr)
        sys.exit(1)

    mcp = create_server(context)
    mcp.run()


if __name__ == "__main__":
    main()
