"""Google Calendar permission handling backed by stored OAuth grants."""

import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow  # type: ignore[import-untyped]
from googleapiclient.discovery import build  # type: ignore[import-untyped]
from oauthlib.oauth2.rfc6749.errors import AccessDeniedError

from eventdesk.api_clients.base import BaseAuthManager
from eventdesk.config import get_current_config
from eventdesk.exceptions import ProviderError
from eventdesk.secrets_manager import (
    DECISION_DENIED,
    SecretsManager,
    get_secrets_manager,
)
from eventdesk.types import AuthorizationState

logger = logging.getLogger(__name__)

# Thread-local storage to safely cache per-thread Google service objects.
_thread_local = threading.local()

_SERVICE_NAME = "google"

_SCOPES = [
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/calendar.events",
]

_TOKEN_URI = "https://oauth2.googleapis.com/token"


def _as_naive_utc(value: datetime) -> datetime:
    # google-auth compares expiry against a naive UTC clock
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class GoogleAuthManager(BaseAuthManager):
    """Maps Google OAuth grants onto calendar authorization states.

    A recorded denial reports DENIED, usable credentials report GRANTED, a
    missing client secrets file reports RESTRICTED (there is nothing to
    prompt with) and everything else is UNDETERMINED.
    """

    def __init__(
        self,
        secrets_manager: Optional[SecretsManager] = None,
        credentials_file: Optional[str] = None,
    ) -> None:
        config = get_current_config()
        self._secrets = secrets_manager or get_secrets_manager(
            config.secrets_database_url
        )
        self._credentials_file = credentials_file or config.google_credentials_file
        self._creds: Optional[Credentials] = None
        self._lock = threading.Lock()

    def _scopes_match(
        self, stored_scopes: list[str], required_scopes: list[str]
    ) -> bool:
        """Check if stored scopes contain all required scopes."""
        return set(required_scopes).issubset(set(stored_scopes))

    def _create_credentials_from_env(self) -> Optional[Credentials]:
        """Create credentials from environment variables if available."""
        client_id = os.environ.get("GOOGLE_OAUTH_CLIENT_ID")
        client_secret = os.environ.get("GOOGLE_OAUTH_CLIENT_SECRET")
        refresh_token = os.environ.get("GOOGLE_OAUTH_REFRESH_TOKEN")

        if not all([client_id, client_secret, refresh_token]):
            return None

        return Credentials(  # type: ignore[no-untyped-call]
            token=None,  # Populated on first refresh
            refresh_token=refresh_token,
            token_uri=_TOKEN_URI,
            client_id=client_id,
            client_secret=client_secret,
            scopes=_SCOPES,
        )

    def _credentials_from_grant(
        self, grant: Dict[str, Any]
    ) -> Optional[Credentials]:
        if grant["decision"] == DECISION_DENIED or not grant["access_token"]:
            return None

        stored_scopes = grant.get("scopes") or _SCOPES
        if not self._scopes_match(stored_scopes, _SCOPES):
            logger.info(
                f"Stored scopes {stored_scopes} don't cover calendar scopes {_SCOPES}"
            )
            return None

        extra_data = grant.get("extra_data") or {}
        creds = Credentials(  # type: ignore[no-untyped-call]
            token=grant["access_token"],
            refresh_token=grant["refresh_token"],
            token_uri=extra_data.get("token_uri", _TOKEN_URI),
            client_id=extra_data.get("client_id"),
            client_secret=extra_data.get("client_secret"),
            scopes=stored_scopes,
        )
        if grant.get("expires_at"):
            creds.expiry = _as_naive_utc(grant["expires_at"])
        return creds

    def _store_credentials(self, creds: Credentials) -> None:
        """Save Google credentials as a calendar grant."""
        expires_at = None
        if creds.expiry:
            expires_at = creds.expiry.replace(tzinfo=timezone.utc)

        extra_data = {}
        if creds.client_id:
            extra_data["client_id"] = creds.client_id
        if creds.client_secret:
            extra_data["client_secret"] = creds.client_secret
        if creds.token_uri:
            extra_data["token_uri"] = creds.token_uri

        assert creds.token is not None
        self._secrets.store_grant(
            service_name=_SERVICE_NAME,
            access_token=creds.token,
            refresh_token=creds.refresh_token,
            expires_at=expires_at,
            scopes=list(creds.scopes) if creds.scopes else _SCOPES,
            extra_data=extra_data or None,
        )

    def authorization_status(self) -> AuthorizationState:
        grant = self._secrets.get_grant(_SERVICE_NAME)
        if grant and grant["decision"] == DECISION_DENIED:
            return AuthorizationState.DENIED

        if self._create_credentials_from_env() is not None:
            return AuthorizationState.GRANTED

        if grant:
            creds = self._credentials_from_grant(grant)
            if creds and (creds.valid or creds.refresh_token):
                return AuthorizationState.GRANTED

        if not os.path.exists(self._credentials_file):
            logger.debug(f"No client secrets file at {self._credentials_file}")
            return AuthorizationState.RESTRICTED

        return AuthorizationState.UNDETERMINED

    def request_access(self) -> AuthorizationState:
        """Run the installed-app OAuth flow in a browser.

        Declining the consent screen is recorded so the user is not asked
        again; other failures propagate.
        """
        logger.info("Starting Google Calendar consent flow...")
        flow = InstalledAppFlow.from_client_secrets_file(
            self._credentials_file, _SCOPES
        )
        try:
            creds = flow.run_local_server(port=0)
        except AccessDeniedError:
            logger.info("Google Calendar access was declined")
            self._secrets.record_denial(_SERVICE_NAME)
            return AuthorizationState.DENIED

        with self._lock:
            self._creds = creds
            self._store_credentials(creds)
        logger.info("Google Calendar access granted")
        return AuthorizationState.GRANTED

    def get_credentials(self) -> Credentials:
        """Get usable credentials, refreshing them when expired."""
        with self._lock:
            if self._creds is None:
                self._creds = self._create_credentials_from_env()
            if self._creds is None:
                grant = self._secrets.get_grant(_SERVICE_NAME)
                if grant:
                    self._creds = self._credentials_from_grant(grant)
            if self._creds is None:
                raise ProviderError("Google Calendar access has not been granted")

            if not self._creds.valid and self._creds.refresh_token:
                self._creds.refresh(Request())  # type: ignore[no-untyped-call]
                self._store_credentials(self._creds)
            return self._creds

    def get_calendar_service(self) -> Any:
        """Get Calendar service (cached per thread)."""
        if not hasattr(_thread_local, "calendar_service"):
            _thread_local.calendar_service = build(
                "calendar", "v3", credentials=self.get_credentials()
            )
        return _thread_local.calendar_service
