from __future__ import annotations

import uuid

from fastapi import Header, HTTPException, status

from folio_receipts.core.logging import set_user_context


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> uuid.UUID:
    """Caller identity as asserted by the upstream authentication layer."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        user_id = uuid.UUID(x_user_id.strip())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user") from e
    set_user_context(str(user_id))
    return user_id
