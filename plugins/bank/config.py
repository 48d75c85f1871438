from typing import Optional
from pydantic import BaseModel


class Config(BaseModel):
    bank_default_persona: Optional[str] = "default"
    bank_page_size: Optional[int] = 20
