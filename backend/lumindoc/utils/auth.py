"""Resolve the caller that owns documents and storage objects."""

from fastapi import Header, HTTPException, status

from lumindoc.config import DEFAULT_USER_ID, MAX_USER_ID_LENGTH


def resolve_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> str:
    """Return the requesting user, falling back to the shared anonymous owner.

    The id becomes the storage key prefix, so it may not contain path separators.
    """
    if x_user_id is None or not x_user_id.strip():
        return DEFAULT_USER_ID

    user_id = x_user_id.strip()
    if "/" in user_id or "\\" in user_id or len(user_id) > MAX_USER_ID_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-User-Id header",
        )

    return user_id
