"""
Configuration for the Google Tasks MCP server.

Settings come from the process environment, optionally seeded from a
``.env`` file in the working directory.
"""

import os
from typing import Optional, Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# ==========================================
# CONSTANTS
# ==========================================

SERVER_NAME = "google-tasks-mcp-server"
SERVER_VERSION = "1.0.0"

# OAuth 2.0 scopes for Google Tasks
SCOPES = ['https://www.googleapis.com/auth/tasks']
TOKEN_URI = 'https://oauth2.googleapis.com/token'
AUTH_URI = 'https://accounts.google.com/o/oauth2/auth'

# Upstream page size ceilings
MAX_TASK_RESULTS = 100
MAX_TASKLIST_RESULTS = 100

DEFAULT_TASK_LIST = "@default"

# Token storage path
CREDENTIALS_PATH = os.path.expanduser('~/.google_tasks_mcp/credentials.json')

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ServerConfig(BaseModel):
    """Runtime settings resolved from the environment"""
    client_id: Optional[str] = Field(None, description="OAuth client ID")
    client_secret: Optional[str] = Field(None, description="OAuth client secret")
    redirect_uri: Optional[str] = Field(None, description="OAuth redirect URI")
    access_token: Optional[str] = Field(None, description="Pre-issued access token")
    refresh_token: Optional[str] = Field(None, description="Pre-issued refresh token")
    credentials_path: str = Field(default=CREDENTIALS_PATH, description="Where refreshed tokens are persisted")
    log_level: str = Field(default="INFO", description="Logging level name")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, load_dotenv_file: bool = True) -> "ServerConfig":
        """Build the config from environment variables, loading .env first"""
        if environ is None:
            if load_dotenv_file:
                load_dotenv()
            environ = os.environ

        def _get(name: str) -> Optional[str]:
            value = environ.get(name)
            return value or None

        return cls(
            client_id=_get('CLIENT_ID'),
            client_secret=_get('CLIENT_SECRET'),
            redirect_uri=_get('REDIRECT_URI'),
            access_token=_get('ACCESS_TOKEN'),
            refresh_token=_get('REFRESH_TOKEN'),
            credentials_path=os.path.expanduser(_get('GTASKS_MCP_CREDENTIALS_PATH') or CREDENTIALS_PATH),
            log_level=(_get('GTASKS_MCP_LOG_LEVEL') or "INFO").upper(),
        )
