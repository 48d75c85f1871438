from typing import Optional
from pydantic import BaseModel


class Config(BaseModel):
    red_packet_expire_hours: Optional[int] = 24
    red_packet_auto_grab_delay_min: Optional[float] = 1.0
    red_packet_auto_grab_delay_max: Optional[float] = 3.0
    red_packet_thank_probability: Optional[float] = 0.5
    red_packet_default_wishes: Optional[str] = "恭喜发财，大吉大利"
