"""Settings read from the environment."""

import os

# --- SERVICE URLS ---
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8081")
USER_API_URL = os.getenv("USER_API_URL", "http://localhost:8081")
RESTAURANT_API_URL = os.getenv("RESTAURANT_API_URL", "http://localhost:8082")
ORDER_API_URL = os.getenv("ORDER_API_URL", "http://localhost:8083")

# Shared by every service client
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", 10))

# --- CLIENT STATE ---
STORAGE_PATH = os.getenv(
    "FOOD_CLIENT_STORAGE",
    os.path.join(os.path.expanduser("~"), ".food_client", "storage.json"),
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# --- ROUTES ---
LOGIN_PATH = "/login"
HOME_PATH = "/"
