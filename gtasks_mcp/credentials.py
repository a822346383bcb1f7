"""
Credential storage and token refresh handling.

Credentials are taken from the ACCESS_TOKEN/REFRESH_TOKEN environment pair
when both are set, otherwise from a JSON file. When the file is the source,
every token refresh is merged into the stored set and written back.
"""

import json
import logging
import os
import tempfile
import threading
from typing import Optional, Dict, Any, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import CredentialsNotFoundError

logger = logging.getLogger(__name__)

SOURCE_ENV = "env"
SOURCE_FILE = "file"


class StoredCredentials(BaseModel):
    """Access/refresh token pair as persisted on disk"""
    model_config = ConfigDict(extra='allow')

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expiry_date: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


def merge_credentials(current: StoredCredentials, update: Mapping[str, Any]) -> StoredCredentials:
    """Overlay ``update`` on ``current``; keys absent from the update keep their value"""
    merged = current.model_dump()
    merged.update(update)
    return StoredCredentials.model_validate(merged)


# ==========================================
# CREDENTIAL STORE
# ==========================================


class CredentialStore:
    """Loads and persists the token pair"""

    def __init__(self, path: str, access_token: Optional[str] = None, refresh_token: Optional[str] = None):
        self.path = path
        self._env_access_token = access_token
        self._env_refresh_token = refresh_token
        self.source: Optional[str] = None

    @classmethod
    def from_config(cls, config) -> "CredentialStore":
        return cls(
            config.credentials_path,
            access_token=config.access_token,
            refresh_token=config.refresh_token,
        )

    def load(self) -> StoredCredentials:
        """Read credentials from the environment pair, falling back to the file"""
        if self._env_access_token and self._env_refresh_token:
            logger.info("Using credentials from environment variables")
            self.source = SOURCE_ENV
            return StoredCredentials(
                access_token=self._env_access_token,
                refresh_token=self._env_refresh_token,
            )

        if not os.path.exists(self.path):
            raise CredentialsNotFoundError(
                f"No credentials found. Set ACCESS_TOKEN and REFRESH_TOKEN, "
                f"or run the auth flow to create {self.path}."
            )

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            creds = StoredCredentials.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            raise CredentialsNotFoundError(f"Error loading credentials from {self.path}: {e}") from e

        logger.info("Using saved credentials from file")
        self.source = SOURCE_FILE
        return creds

    def persist(self, creds: StoredCredentials) -> bool:
        """Write ``creds`` back to the file if the file is the active source.

        Returns True when a write happened.
        """
        if self.source != SOURCE_FILE:
            logger.debug("Credentials came from the environment; not persisting")
            return False
        self.save(creds)
        return True

    def save(self, creds: StoredCredentials) -> None:
        """Atomically overwrite the credential file"""
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".credentials-", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(creds.to_dict(), f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


# ==========================================
# TOKEN REFRESH MONITOR
# ==========================================


class TokenRefreshMonitor:
    """Keeps the client and the store in step with refreshed tokens"""

    def __init__(self, client, store: CredentialStore):
        self.client = client
        self.store = store
        self._attached = False
        self._lock = threading.Lock()

    def attach(self) -> None:
        """Subscribe to the client's refresh notifications (once)"""
        if self._attached:
            return
        self.client.on_tokens(self.handle_tokens)
        self._attached = True

    def handle_tokens(self, tokens: Mapping[str, Any]) -> Optional[StoredCredentials]:
        if not tokens.get('access_token'):
            logger.debug("Token notification without access token ignored")
            return None

        logger.info("Token refreshed")
        with self._lock:
            updated = merge_credentials(self.client.credentials, tokens)
            self.client.set_credentials(updated)
            try:
                if self.store.persist(updated):
                    logger.info("Updated credentials saved to file")
            except OSError as e:
                logger.error(f"Error saving updated credentials: {e}")
        return updated
