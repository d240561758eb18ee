from typing import Dict
from pydantic import BaseModel

class SystemStats(BaseModel):
    boards: int
    collaborators: int
    by_status: Dict[str, int]
