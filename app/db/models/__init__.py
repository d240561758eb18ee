from app.db.models.board import Board
from app.db.models.collaborator import BoardCollaborator

__all__ = ["Board", "BoardCollaborator"]
