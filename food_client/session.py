"""Session store: the single source of truth for who is logged in."""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional

from jose import JWTError, jwt

from food_client.storage import TOKEN_KEY, USER_KEY

logger = logging.getLogger(__name__)


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


def parse_roles(raw_roles: Optional[Iterable[Any]]) -> FrozenSet[Role]:
    """
    Turn the backend role list into a typed capability set.

    Accepts ``[{"id": 1, "name": "ADMIN"}]`` as well as bare names, with or
    without the ``ROLE_`` prefix. Unknown role names are dropped.
    """
    roles = set()
    for raw in raw_roles or []:
        name = raw.get("name") if isinstance(raw, dict) else raw
        if not isinstance(name, str):
            continue
        name = name.upper()
        if name.startswith("ROLE_"):
            name = name[len("ROLE_"):]
        try:
            roles.add(Role(name))
        except ValueError:
            logger.debug("Ignoring unknown role %r", name)
    return frozenset(roles)


def token_claims(token: str) -> Dict[str, Any]:
    """Read JWT claims without verifying the signature. Opaque tokens give no claims."""
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return {}


def token_expired(token: str, now: Optional[float] = None) -> bool:
    exp = token_claims(token).get("exp")
    if exp is None:
        return False
    now = time.time() if now is None else now
    try:
        return float(exp) <= now
    except (TypeError, ValueError):
        return False


@dataclass(frozen=True)
class SessionUser:
    display_name: str
    email: Optional[str] = None
    identity: Optional[str] = None
    roles: FrozenSet[Role] = field(default_factory=frozenset)

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(Role.ADMIN)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "fullName": self.display_name,
            "email": self.email,
            "roles": sorted(role.value for role in self.roles),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionUser":
        return cls(
            display_name=data.get("fullName") or "",
            email=data.get("email"),
            identity=data.get("identity"),
            roles=parse_roles(data.get("roles")),
        )


@dataclass(frozen=True)
class Session:
    token: str
    user: SessionUser


class SessionStore:
    """
    Holds the current token and user. Token and user are always set and
    cleared together, and both are mirrored into durable storage so that a
    restarted client keeps the login.

    Listeners registered with ``subscribe`` are called once on every
    transition from logged-in to logged-out; that is the cue to drop any
    cached server data.
    """

    def __init__(self, storage, clock: Callable[[], float] = time.time) -> None:
        self._storage = storage
        self._clock = clock
        self._session: Optional[Session] = None
        self._listeners: List[Callable[[], None]] = []
        self.restore()

    # --- READS ---
    def current_token(self) -> Optional[str]:
        return self._session.token if self._session else None

    def current_user(self) -> Optional[SessionUser]:
        return self._session.user if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def has_role(self, role: Role) -> bool:
        user = self.current_user()
        return user is not None and user.has_role(role)

    def is_expired(self) -> bool:
        token = self.current_token()
        return token is not None and token_expired(token, self._clock())

    # --- MUTATIONS ---
    def set_session(self, token: str, user: SessionUser) -> None:
        if not token:
            raise ValueError("A session needs a non-empty token")
        self._session = Session(token=token, user=user)
        self._storage.set(TOKEN_KEY, token)
        self._storage.set(USER_KEY, user.to_dict())
        logger.info("Session established for %s", user.email or user.display_name)

    def clear_session(self) -> bool:
        """Clear token and user. Returns False when there was nothing to clear."""
        was_present = self._session is not None
        self._session = None
        self._storage.remove(TOKEN_KEY)
        self._storage.remove(USER_KEY)
        if was_present:
            logger.info("Session cleared")
            for listener in list(self._listeners):
                listener()
        return was_present

    def restore(self) -> None:
        """Load the session persisted by a previous run, dropping it if stale or partial."""
        token = self._storage.get(TOKEN_KEY)
        user_data = self._storage.get(USER_KEY)
        if not token or not isinstance(user_data, dict):
            if token or user_data:
                logger.warning("Dropping partial persisted session")
            self._storage.remove(TOKEN_KEY)
            self._storage.remove(USER_KEY)
            self._session = None
            return
        if token_expired(token, self._clock()):
            logger.info("Persisted session token has expired")
            self._storage.remove(TOKEN_KEY)
            self._storage.remove(USER_KEY)
            self._session = None
            return
        self._session = Session(token=token, user=SessionUser.from_dict(user_data))

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
