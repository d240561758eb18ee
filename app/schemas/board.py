from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BoardStatus(str, Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    COMPLETE = "complete"
    ARCHIVED = "archived"


class BlockType(str, Enum):
    TOUCHPOINT = "touchpoint"
    EMAIL = "email"
    PENDO = "pendo"
    ROLE = "role"
    PROCESS = "process"
    FRICTION = "friction"
    POLICY = "policy"
    TECHNOLOGY = "technology"
    RATIONALE = "rationale"
    QUESTION = "question"
    NOTE = "note"
    HIDDEN = "hidden"
    HYPOTHESIS = "hypothesis"
    INSIGHT = "insight"
    METRICS = "metrics"
    EXPERIMENT = "experiment"
    VIDEO = "video"
    FRONT_STAGE = "front-stage"
    BACK_STAGE = "back-stage"
    CUSTOM_DIVIDER = "custom-divider"


class Department(str, Enum):
    ENGINEERING = "Engineering"
    MARKETING = "Marketing"
    PRODUCT = "Product"
    DESIGN = "Design"
    BRAND = "Brand"
    SUPPORT = "Support"
    SALES = "Sales"
    CUSTOM = "Custom"


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Comment(CamelModel):
    id: str
    content: str
    author_name: str = ""
    user_id: str = ""
    created_at: Optional[datetime] = None  # stamped by the server
    completed: bool = False


class Emotion(CamelModel):
    value: int = Field(ge=1, le=7)
    color: str


class Column(CamelModel):
    id: str
    name: str = ""
    storyboard_image_url: Optional[str] = None
    storyboard_prompt: Optional[str] = None
    emotion: Optional[Emotion] = None


class Phase(CamelModel):
    id: str
    name: str = ""
    columns: List[Column] = Field(default_factory=list)
    collapsed: bool = False


class Block(CamelModel):
    id: str
    column_id: str
    content: str = ""
    type: BlockType = BlockType.TOUCHPOINT
    comments: List[Comment] = Field(default_factory=list)
    notes: Optional[str] = None
    emoji: Optional[str] = None
    department: Optional[Department] = None
    flagged: bool = False


class CollaboratorRead(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    user_id: str
    role: str


class BoardRead(CamelModel):
    """The canonical board document, as the server returns it."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    status: BoardStatus = BoardStatus.DRAFT
    phases: List[Phase] = Field(default_factory=list)
    blocks: List[Block] = Field(default_factory=list)
    owner_id: str = ""
    collaborators: List[CollaboratorRead] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BoardCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    status: BoardStatus = BoardStatus.DRAFT
    phases: List[Phase] = Field(default_factory=list)
    blocks: List[Block] = Field(default_factory=list)


class BoardSummary(CamelModel):
    id: int
    name: str
    status: BoardStatus
    owner_id: str
    phase_count: int
    block_count: int
    updated_at: Optional[datetime] = None
