from pydantic import BaseModel

class Principal(BaseModel):
    """Identity attached to a request by the upstream identity provider."""
    user_id: str
    name: str = ""
