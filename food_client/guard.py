"""Route table and the access check made before every view renders."""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from food_client.config import HOME_PATH, LOGIN_PATH
from food_client.session import Role

logger = logging.getLogger(__name__)


class Access(str, Enum):
    PUBLIC = "PUBLIC"
    AUTHENTICATED = "AUTHENTICATED"
    AUTHENTICATED_ADMIN = "AUTHENTICATED_ADMIN"


@dataclass(frozen=True)
class Route:
    name: str
    template: str
    access: Access

    @property
    def pattern(self) -> "re.Pattern":
        regex = re.sub(r"\{(\w+)\}", r"(?P<\1>\\d+)", self.template)
        return re.compile(f"^{regex}$")

    def match(self, path: str) -> Optional[Dict[str, int]]:
        m = self.pattern.match(path)
        if not m:
            return None
        return {key: int(value) for key, value in m.groupdict().items()}


MENU_ROUTE = "restaurant_menu"

ROUTES: List[Route] = [
    Route("login", LOGIN_PATH, Access.PUBLIC),
    Route("register", "/register", Access.PUBLIC),
    Route("dashboard", HOME_PATH, Access.AUTHENTICATED),
    Route("restaurants", "/restaurants", Access.AUTHENTICATED),
    Route(MENU_ROUTE, "/restaurants/{restaurant_id}", Access.AUTHENTICATED),
    Route("orders", "/orders", Access.AUTHENTICATED),
    Route("profile", "/profile", Access.AUTHENTICATED),
    Route("edit_profile", "/profile/edit", Access.AUTHENTICATED),
    Route("admin", "/admin", Access.AUTHENTICATED_ADMIN),
    Route("admin_restaurants", "/admin/restaurants", Access.AUTHENTICATED_ADMIN),
    Route("admin_dishes", "/admin/restaurants/{restaurant_id}/dishes", Access.AUTHENTICATED_ADMIN),
    Route("admin_users", "/admin/users", Access.AUTHENTICATED_ADMIN),
    Route("admin_orders", "/admin/orders", Access.AUTHENTICATED_ADMIN),
]


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    route: Optional[Route] = None
    params: Dict[str, int] = field(default_factory=dict)
    redirect: Optional[str] = None


class RouteGuard:
    """
    Decide per navigation whether the session may see a path.

    Nothing is cached: every check reads the session as it is right now.
    An expired token counts as no session and is cleared on sight.
    """

    def __init__(self, session_store, routes: Optional[List[Route]] = None) -> None:
        self.session_store = session_store
        self.routes = routes if routes is not None else ROUTES

    def resolve(self, path: str) -> Tuple[Optional[Route], Dict[str, int]]:
        for route in self.routes:
            params = route.match(path)
            if params is not None:
                return route, params
        return None, {}

    def check(self, path: str) -> GuardDecision:
        if self.session_store.is_expired():
            logger.info("Session token expired")
            self.session_store.clear_session()

        route, params = self.resolve(path)
        if route is None:
            # Unknown paths render a not-found view
            return GuardDecision(allowed=True)
        if route.access == Access.PUBLIC:
            return GuardDecision(allowed=True, route=route, params=params)

        user = self.session_store.current_user()
        if user is None:
            return GuardDecision(allowed=False, route=route, params=params, redirect=LOGIN_PATH)
        if route.access == Access.AUTHENTICATED_ADMIN and not user.has_role(Role.ADMIN):
            logger.warning("Non-admin %s denied %s", user.email, path)
            return GuardDecision(allowed=False, route=route, params=params, redirect=HOME_PATH)
        return GuardDecision(allowed=True, route=route, params=params)

    def enforce(self, navigator) -> GuardDecision:
        """Check the navigator's current path and follow a redirect if one is needed."""
        decision = self.check(navigator.current_path)
        if decision.allowed:
            return decision
        if decision.redirect == LOGIN_PATH:
            navigator.redirect_to_login()
        else:
            navigator.navigate(decision.redirect)
        return self.check(navigator.current_path)
