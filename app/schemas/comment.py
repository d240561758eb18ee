from typing import Optional
from pydantic import Field

from app.schemas.board import CamelModel

class CommentCreate(CamelModel):
    content: str = Field(min_length=1)
    user_id: Optional[str] = None
    author_name: Optional[str] = None
    id: Optional[str] = None  # client-generated for optimistic rendering
