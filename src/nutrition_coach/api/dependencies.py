"""Request dependencies shared by the API routers."""

from fastapi import Header, HTTPException, status


async def require_user(x_user_id: str | None = Header(default=None)) -> str:
    """Return the caller's user id from the identity header."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return x_user_id.strip()
