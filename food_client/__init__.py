"""Client for the food delivery platform: session, service clients, cart and checkout."""

__version__ = "0.1.0"
