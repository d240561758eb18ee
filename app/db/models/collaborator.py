from app.db.base import Base
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship

class BoardCollaborator(Base):
    __tablename__ = "board_collaborators"

    id = Column(Integer, primary_key=True, index=True)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, nullable=False)
    role = Column(String, nullable=False, server_default="editor")  # "editor" or "viewer"
    granted_by = Column(String, nullable=False)
    granted_at = Column(DateTime(timezone=True), server_default=func.now())

    board = relationship("Board", back_populates="collaborators")

    __table_args__ = (
        UniqueConstraint("board_id", "user_id", name="uq_board_collaborator"),
    )
