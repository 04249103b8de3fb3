"""User profile and user administration endpoints."""

from typing import List

from food_client.schemas import UpdateUserRequest, UserProfile, parse_page, parse_response


class UserApi:
    def __init__(self, client) -> None:
        self.client = client

    def get_me(self) -> UserProfile:
        return parse_response(UserProfile, self.client.get("/users/me"), self.client.name)

    def update_me(self, update: UpdateUserRequest) -> UserProfile:
        data = self.client.put("/users/me", json=update.model_dump(mode="json", by_alias=True))
        return parse_response(UserProfile, data, self.client.name)

    # --- ADMIN ---
    def list_users(self) -> List[UserProfile]:
        return parse_page(self.client.get("/users"), UserProfile, self.client.name).content

    def delete_user(self, user_id: int) -> None:
        self.client.delete(f"/users/{user_id}")
