"""
One-off OAuth authorization that writes the credential file.

Opens a browser for consent using the installed-app flow and saves the
resulting access/refresh token pair where the server expects to find it.
"""

import logging
import sys

from google_auth_oauthlib.flow import InstalledAppFlow

from .config import AUTH_URI, SCOPES, TOKEN_URI, ServerConfig
from .credentials import CredentialStore, StoredCredentials
from .oauth import expiry_to_millis

logger = logging.getLogger(__name__)


def client_config(config: ServerConfig) -> dict:
    """OAuth client configuration in the client-secrets file layout"""
    redirect_uris = [config.redirect_uri] if config.redirect_uri else ["http://localhost"]
    return {
        "installed": {
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": redirect_uris,
        }
    }


def run_auth_flow(config: ServerConfig, flow_factory=InstalledAppFlow.from_client_config) -> int:
    """Authorize interactively and persist tokens. Returns a process exit code."""
    if not config.client_id or not config.client_secret:
        print("""
Google OAuth client not configured:

1. Go to https://console.cloud.google.com/
2. Create a new project or select an existing one
3. Enable the Google Tasks API
4. Create OAuth 2.0 credentials (Desktop application type)
5. Set CLIENT_ID and CLIENT_SECRET in the environment or a .env file

Then run this command again.
        """, file=sys.stderr)
        return 1

    flow = flow_factory(client_config(config), SCOPES)
    creds = flow.run_local_server(port=0)
    if not creds.refresh_token:
        logger.error("Authorization did not return a refresh token")
        return 1

    store = CredentialStore(config.credentials_path)
    store.save(StoredCredentials(
        access_token=creds.token,
        refresh_token=creds.refresh_token,
        expiry_date=expiry_to_millis(creds.expiry),
    ))
    logger.info(f"Credentials saved to {config.credentials_path}")
    return 0
