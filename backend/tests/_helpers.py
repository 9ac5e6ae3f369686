# tests/_helpers.py
from app.core.auth import create_tokens_for_user

PASSWORD = "Secret123!"


def auth_headers(user):
    """Bearer header for ``user``, bypassing the login endpoint."""
    return {"Authorization": f"Bearer {create_tokens_for_user(user).access_token}"}
