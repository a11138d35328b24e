"""Admin login and locally cached sessions.

One shared admin credential gates the console. The credential lives in its
own single-record collection (bootstrapped with the configured default on
first login) and the session is cached in local storage with a fixed expiry.
There is no server-side session store, refresh or revocation.
"""
import asyncio
import uuid
from datetime import datetime, timedelta, UTC
from typing import List, Optional

import bcrypt
from pydantic import ValidationError

from hms_store.config import StoreSettings
from hms_store.logging_config import get_logger
from hms_store.models import AdminAuth, AdminAuthCreate, AdminSession, generate_id
from hms_store.storage import KeyValueStorage

logger = get_logger(__name__)

DEFAULT_ADMIN_ID = "admin_1"


def hash_password(password: str) -> str:
    """Hash password using bcrypt."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Verify password against hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        return False


def _iso(moment: datetime) -> str:
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


class SessionManager:
    """
    Issues and checks the cached admin session.

    States: logged out (no record) -> logged in (record, now < expires_at)
    -> logged out (logout removes the record, or it expires).
    """

    def __init__(self, storage: KeyValueStorage, key: str, ttl_hours: int = 24):
        """
        Args:
            storage: Local key/value storage holding the session record
            key: Storage key of the session record
            ttl_hours: Session lifetime in hours
        """
        self.storage = storage
        self.key = key
        self.ttl = timedelta(hours=ttl_hours)

    def open_session(self, username: str, now: Optional[datetime] = None) -> AdminSession:
        """
        Mint a token for username and cache the session record.

        Args:
            username: Authenticated admin username
            now: Issue time (defaults to current UTC; naive is read as UTC)

        Returns:
            The cached AdminSession
        """
        now = _as_utc(now or datetime.now(UTC))
        session = AdminSession(
            id=generate_id(),
            username=username,
            token=f"hms_{uuid.uuid4().hex}",
            expires_at=_iso(now + self.ttl),
            created_at=_iso(now),
        )
        if not self.storage.write_json(self.key, session.to_wire()):
            logger.error("session_not_persisted", username=username)
        return session

    def current_session(self) -> Optional[AdminSession]:
        """Cached session record, or None if absent or unreadable."""
        data = self.storage.read_json(self.key)
        if not isinstance(data, dict):
            return None
        try:
            return AdminSession.model_validate(data)
        except ValidationError:
            logger.warning("session_unparseable", key=self.key)
            return None

    def validate_session(self, now: Optional[datetime] = None) -> bool:
        """
        Check whether a usable session is cached.

        Args:
            now: Time to check against (defaults to current UTC)

        Returns:
            True iff a session exists, parses, and now < expires_at.
            Naive times on either side are read as UTC.
        """
        session = self.current_session()
        if session is None:
            return False

        try:
            expires_at = datetime.fromisoformat(session.expires_at)
        except ValueError:
            logger.warning("session_expiry_unparseable", expires_at=session.expires_at)
            return False

        return _as_utc(now or datetime.now(UTC)) < _as_utc(expires_at)

    def logout(self) -> None:
        """Remove the cached session."""
        self.storage.remove_item(self.key)


class AdminAuthenticator:
    """Credential checks shared by the local and remote authenticators."""

    def __init__(self, credentials, sessions: SessionManager, settings: StoreSettings):
        """
        Args:
            credentials: Collection of AdminAuth records
            sessions: SessionManager caching the login
            settings: Supplies the default admin username/password
        """
        self.credentials = credentials
        self.sessions = sessions
        self.settings = settings

    def _default_admin(self) -> AdminAuthCreate:
        return AdminAuthCreate(
            username=self.settings.admin_username,
            password_hash=hash_password(self.settings.admin_password),
        )

    @staticmethod
    def _match(auths: List[AdminAuth], username: str, password: str) -> Optional[AdminAuth]:
        for auth in auths:
            if auth.username == username and verify_password(password, auth.password_hash):
                return auth
        return None

    @staticmethod
    def _reject(username: str) -> None:
        logger.warning("login_rejected", username=username)
        return None

    @staticmethod
    def _accept(session: AdminSession) -> str:
        logger.info("login_succeeded", username=session.username)
        return session.token

    def validate_session(self, now: Optional[datetime] = None) -> bool:
        return self.sessions.validate_session(now)

    def current_session(self) -> Optional[AdminSession]:
        return self.sessions.current_session()

    def logout(self) -> None:
        self.sessions.logout()
        logger.info("logout")


class LocalAdminAuthenticator(AdminAuthenticator):
    """Login against credentials held in local storage."""

    def initialize(self) -> None:
        """Create the default admin (id ``admin_1``) when no readable credential exists."""
        if not self.credentials.get_all():
            try:
                self.credentials.create(self._default_admin(), record_id=DEFAULT_ADMIN_ID)
            except ValueError:
                # an unreadable credential record already holds the id
                logger.warning("default_admin_id_taken", record_id=DEFAULT_ADMIN_ID)
                self.credentials.create(self._default_admin())
            logger.info("default_admin_created", username=self.settings.admin_username)

    def login(self, username: str, password: str) -> Optional[str]:
        """
        Check credentials and open a session.

        Returns:
            Session token, or None if the credentials do not match
        """
        self.initialize()
        admin = self._match(self.credentials.get_all(), username, password)
        if admin is None:
            return self._reject(username)
        return self._accept(self.sessions.open_session(admin.username))


class RemoteAdminAuthenticator(AdminAuthenticator):
    """Login against credentials held in the admin-auth blob document."""

    async def initialize(self) -> None:
        """Create the default admin when the document is empty."""
        if not await self.credentials.get_all():
            try:
                created = await self.credentials.create(self._default_admin(), record_id=DEFAULT_ADMIN_ID)
            except ValueError:
                logger.warning("default_admin_id_taken", record_id=DEFAULT_ADMIN_ID)
                created = await self.credentials.create(self._default_admin())
            if created is not None:
                logger.info("default_admin_created", username=self.settings.admin_username)

    async def login(self, username: str, password: str) -> Optional[str]:
        """
        Check credentials and open a session.

        Returns:
            Session token, or None if the credentials do not match or the
            credential document could not be read
        """
        await self.initialize()
        admin = self._match(await self.credentials.get_all(), username, password)
        if admin is None:
            return self._reject(username)
        session = await asyncio.to_thread(self.sessions.open_session, admin.username)
        return self._accept(session)
