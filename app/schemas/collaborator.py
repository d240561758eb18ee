from typing import Literal
from app.schemas.board import CamelModel

class CollaboratorCreate(CamelModel):
    user_id: str
    role: Literal["editor", "viewer"] = "editor"
