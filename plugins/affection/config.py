from typing import Optional
from pydantic import BaseModel


class Config(BaseModel):
    affection_default_session: Optional[str] = "player"
