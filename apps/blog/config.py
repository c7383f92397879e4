"""Process-wide settings for the blog service, read once at import."""
import os

from apps.shared.database import DATABASE_URL

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))

# Static assets served at "/" next to the API
PUBLIC_DIR = os.getenv(
    "PUBLIC_DIR",
    os.path.join(os.path.dirname(__file__), "..", "..", "public"),
)

__all__ = ["DATABASE_URL", "HOST", "PORT", "PUBLIC_DIR"]
