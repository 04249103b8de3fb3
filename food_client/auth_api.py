"""Login and registration endpoints."""

from food_client.schemas import AuthResponse, LoginRequest, RegisterRequest, parse_response


class AuthApi:
    """``/auth`` endpoints of the user service, served through the default client."""

    def __init__(self, client) -> None:
        self.client = client

    def login(self, credentials: LoginRequest) -> AuthResponse:
        data = self.client.post(
            "/auth/login", json=credentials.model_dump(mode="json"), public=True
        )
        return parse_response(AuthResponse, data, self.client.name)

    def register(self, account: RegisterRequest) -> AuthResponse:
        data = self.client.post(
            "/auth/register", json=account.model_dump(mode="json", by_alias=True), public=True
        )
        return parse_response(AuthResponse, data, self.client.name)
