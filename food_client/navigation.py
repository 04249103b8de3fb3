"""Where the user is, and the hints kept across a login detour."""

import logging
from typing import Any, Dict, List, Optional

from food_client.config import HOME_PATH, LOGIN_PATH
from food_client.storage import PENDING_DISH_KEY, REDIRECT_KEY

logger = logging.getLogger(__name__)


class Navigator:
    """
    Tracks the path being shown and the hints that survive a trip through
    the login page (where to go back to, which dish the user wanted).
    """

    def __init__(self, storage, path: str = HOME_PATH) -> None:
        self._storage = storage
        self.current_path = path
        self.history: List[str] = [path]

    @property
    def on_login_page(self) -> bool:
        return self.current_path == LOGIN_PATH

    def navigate(self, path: str) -> None:
        if path == self.current_path:
            return
        logger.debug("Navigating %s -> %s", self.current_path, path)
        self.current_path = path
        self.history.append(path)

    def redirect_to_login(self, return_to: Optional[str] = None) -> bool:
        """
        Send the user to the login page, remembering where they were.

        Does nothing when the login page is already showing, so two callers
        racing to redirect produce one redirect and keep the first remembered path.
        """
        if self.on_login_page:
            return False
        self.remember(return_to or self.current_path)
        self.navigate(LOGIN_PATH)
        return True

    # --- REDIRECT AFTER LOGIN ---
    def remember(self, path: str) -> None:
        self._storage.set(REDIRECT_KEY, path)

    @property
    def remembered_path(self) -> Optional[str]:
        return self._storage.get(REDIRECT_KEY)

    def pop_redirect(self, default: str = HOME_PATH) -> str:
        path = self._storage.get(REDIRECT_KEY)
        self._storage.remove(REDIRECT_KEY)
        return path or default

    # --- PENDING DISH ---
    def remember_pending_dish(self, restaurant_id: int, dish_id: int, dish_name: str) -> None:
        self._storage.set(
            PENDING_DISH_KEY,
            {"restaurantId": restaurant_id, "id": dish_id, "name": dish_name},
        )

    def pop_pending_dish(self, restaurant_id: int) -> Optional[Dict[str, Any]]:
        """Return and forget the pending dish, but only for the restaurant it was picked in."""
        pending = self._storage.get(PENDING_DISH_KEY)
        if not pending or pending.get("restaurantId") != restaurant_id:
            return None
        self._storage.remove(PENDING_DISH_KEY)
        return pending
