from typing import Optional

from fastapi import Header, HTTPException

from app.schemas.principal import Principal


async def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
) -> Principal:
    """Principal attached by the identity gateway in front of this service."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return Principal(user_id=x_user_id, name=x_user_name or "")
