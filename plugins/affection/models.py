import json
from dataclasses import dataclass, field
from typing import List

from sqlalchemy import Column, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base


Base = declarative_base()

HISTORY_LIMIT = 50


class Affection(Base):
    __tablename__ = "affections"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "character_id", "session_id", name="uq_user_character_session"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False)
    character_id = Column(String, nullable=False)
    session_id = Column(String, nullable=False)  # 人设 ID，隔离不同身份的好感度
    score = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    level_title = Column(String, nullable=False, default="陌生人")
    history = Column(Text, nullable=False, default="[]")  # JSON, newest first

    def get_history(self) -> List[dict]:
        return json.loads(self.history or "[]")

    def set_history(self, entries: List[dict]) -> None:
        self.history = json.dumps(entries[:HISTORY_LIMIT], ensure_ascii=False)


@dataclass
class AffectionRecord:
    score: int = 0
    level: int = 1
    level_title: str = "陌生人"
    history: List[dict] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Affection) -> "AffectionRecord":
        return cls(
            score=row.score,
            level=row.level,
            level_title=row.level_title,
            history=row.get_history(),
        )

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "level": self.level,
            "level_title": self.level_title,
            "history": self.history,
        }


@dataclass
class AffectionUpdate:
    character_id: str
    session_id: str
    old_score: int
    new_score: int
    change: int
    reason: str
    level: int
    level_title: str
    level_up: bool
    level_down: bool

    def to_dict(self) -> dict:
        return {
            "charId": self.character_id,
            "sessionId": self.session_id,
            "oldScore": self.old_score,
            "newScore": self.new_score,
            "change": self.change,
            "reason": self.reason,
            "level": self.level,
            "level_title": self.level_title,
            "levelUp": self.level_up,
            "levelDown": self.level_down,
        }
