"""
OAuth client wrapper around google-auth user credentials.

google-auth refreshes expired access tokens on its own but offers no hook to
observe it. ``RefreshingCredentials`` adds one, and ``OAuthClient`` exposes
it as a "tokens" subscription carrying the newly issued fields.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Callable, List, Dict, Any

import google_auth_httplib2
import httplib2
from google.oauth2.credentials import Credentials

from .config import SCOPES, TOKEN_URI
from .credentials import StoredCredentials

logger = logging.getLogger(__name__)

TokensHandler = Callable[[Dict[str, Any]], Any]


def expiry_to_millis(expiry: Optional[datetime]) -> Optional[int]:
    """google-auth expiry (naive UTC) to epoch milliseconds"""
    if expiry is None:
        return None
    return int(expiry.replace(tzinfo=timezone.utc).timestamp() * 1000)


def millis_to_expiry(expiry_date: Optional[int]) -> Optional[datetime]:
    if expiry_date is None:
        return None
    return datetime.fromtimestamp(expiry_date / 1000, tz=timezone.utc).replace(tzinfo=None)


class RefreshingCredentials(Credentials):
    """Credentials that report every successful refresh"""

    _on_refresh: Optional[Callable[[Dict[str, Any]], None]] = None

    def set_refresh_listener(self, listener: Callable[[Dict[str, Any]], None]) -> None:
        self._on_refresh = listener

    def refresh(self, request):
        previous_refresh_token = self.refresh_token
        super().refresh(request)

        tokens: Dict[str, Any] = {
            'access_token': self.token,
            'expiry_date': expiry_to_millis(self.expiry),
        }
        if self.refresh_token and self.refresh_token != previous_refresh_token:
            tokens['refresh_token'] = self.refresh_token
        if self._on_refresh is not None:
            self._on_refresh({k: v for k, v in tokens.items() if v is not None})

    def apply_tokens(self, access_token: Optional[str], refresh_token: Optional[str],
                     expiry: Optional[datetime]) -> None:
        """Replace the live token state"""
        self.token = access_token
        self.expiry = expiry
        self._refresh_token = refresh_token


class OAuthClient:
    """Token-issuing client with a "tokens refreshed" notification channel"""

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: Optional[str] = None,
        token_uri: str = TOKEN_URI,
        scopes: Optional[List[str]] = None,
    ):
        self.redirect_uri = redirect_uri
        self.credentials = StoredCredentials()
        self._listeners: List[TokensHandler] = []
        self.google_credentials = RefreshingCredentials(
            token=None,
            refresh_token=None,
            client_id=client_id,
            client_secret=client_secret,
            token_uri=token_uri,
            scopes=scopes or SCOPES,
        )
        self.google_credentials.set_refresh_listener(self._emit_tokens)

    @classmethod
    def from_config(cls, config) -> "OAuthClient":
        return cls(config.client_id, config.client_secret, redirect_uri=config.redirect_uri)

    def on_tokens(self, handler: TokensHandler) -> None:
        """Register a handler for refreshed token fields"""
        self._listeners.append(handler)

    def set_credentials(self, creds: StoredCredentials) -> None:
        self.credentials = creds
        self.google_credentials.apply_tokens(
            creds.access_token,
            creds.refresh_token,
            millis_to_expiry(creds.expiry_date),
        )

    def authorized_http(self) -> google_auth_httplib2.AuthorizedHttp:
        """A fresh authorized transport; httplib2.Http is not thread-safe"""
        return google_auth_httplib2.AuthorizedHttp(self.google_credentials, http=httplib2.Http())

    def _emit_tokens(self, tokens: Dict[str, Any]) -> None:
        for handler in list(self._listeners):
            handler(tokens)
