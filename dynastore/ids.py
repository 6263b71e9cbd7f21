"""Session identifier generation."""

import base64
import secrets

SESSION_ID_BYTES = 32


def generate_session_id() -> str:
    """Return 32 random bytes as unpadded base-32 (52 characters)."""
    raw = secrets.token_bytes(SESSION_ID_BYTES)
    return base64.b32encode(raw).decode("ascii").rstrip("=")
