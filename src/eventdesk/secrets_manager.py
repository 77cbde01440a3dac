"""Persistent storage for calendar grants: OAuth tokens or a recorded denial."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import TIMESTAMP, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

logger = logging.getLogger(__name__)

DECISION_GRANTED = "granted"
DECISION_DENIED = "denied"


class Base(DeclarativeBase):
    pass


class CalendarGrant(Base):
    """SQLAlchemy model for one provider's calendar grant."""

    __tablename__ = "calendar_grants"

    # Provider name as primary key (e.g., 'google')
    service_name: Mapped[str] = mapped_column(String(100), primary_key=True)

    # 'granted' or 'denied'
    decision: Mapped[str] = mapped_column(String(20), nullable=False)

    access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # JSON string of scopes list
    scopes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # JSON string for OAuth client details
    extra_data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class SecretsManager:
    """Stores calendar grants so permission survives restarts."""

    _instance: Optional["SecretsManager"] = None

    def __init__(self, database_url: str) -> None:
        engine_args: Dict[str, Any] = {}
        if database_url.startswith("postgresql"):
            from sqlalchemy.pool import NullPool

            engine_args["poolclass"] = NullPool
        elif database_url == "sqlite:///:memory:":
            # One shared connection, otherwise each session sees an empty db
            from sqlalchemy.pool import StaticPool

            engine_args["poolclass"] = StaticPool
            engine_args["connect_args"] = {"check_same_thread": False}

        self._engine = create_engine(database_url, **engine_args)
        self._session_factory = sessionmaker(bind=self._engine)

        Base.metadata.create_all(self._engine)

        logger.info("SecretsManager initialized with database")

    @property
    def engine(self) -> Engine:
        """Get the SQLAlchemy engine instance."""
        return self._engine

    def _get_session(self) -> Session:
        return self._session_factory()

    def _upsert(self, service_name: str, **values: Any) -> None:
        with self._get_session() as session:
            grant = session.get(CalendarGrant, service_name)
            if grant is None:
                session.add(CalendarGrant(service_name=service_name, **values))
            else:
                for key, value in values.items():
                    setattr(grant, key, value)
                grant.updated_at = datetime.now(timezone.utc)
            session.commit()

    def store_grant(
        self,
        service_name: str,
        access_token: str,
        refresh_token: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        scopes: Optional[list[str]] = None,
        extra_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Store or replace the granted token for a provider.

        Args:
            service_name: Name of the provider (e.g., 'google')
            access_token: The access token
            refresh_token: Optional refresh token
            expires_at: Token expiration datetime
            scopes: List of granted scopes
            extra_data: OAuth client details needed to refresh
        """
        self._upsert(
            service_name,
            decision=DECISION_GRANTED,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
            scopes=json.dumps(scopes) if scopes else None,
            extra_data=json.dumps(extra_data) if extra_data else None,
        )
        logger.info(f"Stored calendar grant for service: {service_name}")

    def record_denial(self, service_name: str) -> None:
        """Remember that the user declined access, dropping any token."""
        self._upsert(
            service_name,
            decision=DECISION_DENIED,
            access_token=None,
            refresh_token=None,
            expires_at=None,
            scopes=None,
            extra_data=None,
        )
        logger.info(f"Recorded calendar access denial for service: {service_name}")

    def get_grant(self, service_name: str) -> Optional[Dict[str, Any]]:
        """Retrieve the stored grant for a provider.

        Returns:
            Dictionary containing grant data or None if nothing is stored
        """
        with self._get_session() as session:
            grant = session.get(CalendarGrant, service_name)
            if grant is None:
                return None

            return {
                "decision": grant.decision,
                "access_token": grant.access_token,
                "refresh_token": grant.refresh_token,
                "expires_at": grant.expires_at,
                "scopes": json.loads(grant.scopes) if grant.scopes else None,
                "extra_data": (
                    json.loads(grant.extra_data) if grant.extra_data else None
                ),
                "updated_at": grant.updated_at,
            }

    def delete_grant(self, service_name: str) -> bool:
        """Forget a provider's grant or denial.

        Returns:
            True if something was deleted, False if nothing was stored
        """
        with self._get_session() as session:
            grant = session.get(CalendarGrant, service_name)
            if grant is None:
                logger.warning(f"No calendar grant found for service: {service_name}")
                return False
            session.delete(grant)
            session.commit()
            logger.info(f"Deleted calendar grant for service: {service_name}")
            return True


def get_secrets_manager(database_url: Optional[str] = None) -> SecretsManager:
    """Get the singleton SecretsManager instance.

    Args:
        database_url: Database URL (required for first initialization, ignored for subsequent calls)

    Raises:
        ValueError: If database_url is not provided for first initialization
    """
    if SecretsManager._instance is None:
        if database_url is None:
            raise ValueError("database_url is required for first initialization")
        SecretsManager._instance = SecretsManager(database_url)
    elif database_url is not None:
        logger.debug(
            "SecretsManager singleton already exists. "
            f"Ignoring database_url parameter: {database_url}"
        )

    return SecretsManager._instance
