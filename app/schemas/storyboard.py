from pydantic import Field

from app.schemas.board import BoardRead, CamelModel

class StoryboardRequest(CamelModel):
    prompt: str = Field(min_length=1)

class StoryboardResponse(CamelModel):
    image_url: str
    prompt: str
    column_id: str
    board: BoardRead
