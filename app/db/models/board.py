from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from app.db.base import Base

# JSONB on Postgres, plain JSON elsewhere (sqlite in tests)
Document = JSON().with_variant(JSONB(), "postgresql")

class Board(Base):
    __tablename__ = "boards"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, server_default="draft")
    phases = Column(Document, nullable=False, default=list)  # camelCase Phase documents
    blocks = Column(Document, nullable=False, default=list)  # camelCase Block documents
    owner_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
    collaborators = relationship(
        "BoardCollaborator",
        back_populates="board",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
