from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from ..bank.utils import format_amount


Base = declarative_base()


class RedPacket(Base):
    __tablename__ = "red_packets"

    id = Column(String, primary_key=True)  # rp_<ms>_<rand6>
    channel_id = Column(String, nullable=False, index=True)
    channel_index = Column(
        Integer, nullable=False
    )  # Channel-specific index (1, 2, 3...)
    sender_id = Column(String, nullable=False)
    sender_name = Column(String, nullable=False)
    sender_avatar = Column(String, nullable=False, default="")
    wishes = Column(String, nullable=False)
    # Amounts are in fen (0.01)
    total_amount = Column(Integer, nullable=False)
    total_num = Column(Integer, nullable=False)
    remain_amount = Column(Integer, nullable=False)
    remain_num = Column(Integer, nullable=False)
    created_at = Column(BigInteger, nullable=False)  # Unix ms
    expired_at = Column(BigInteger, nullable=False)  # Unix ms
    is_expired = Column(Boolean, nullable=False, default=False)

    records = relationship(
        "PacketRecord",
        back_populates="packet",
        cascade="all, delete-orphan",
        order_by="PacketRecord.id",
    )

    def is_overdue(self, now_ms: int) -> bool:
        return bool(self.is_expired) or now_ms > self.expired_at

    def status(self, now_ms: int) -> str:
        if self.is_overdue(now_ms):
            return "expired"
        if self.remain_num <= 0:
            return "finished"
        return "available"

    def find_record(self, user_id: str) -> Optional["PacketRecord"]:
        for record in self.records:
            if record.user_id == user_id:
                return record
        return None

    def best_record(self) -> Optional["PacketRecord"]:
        for record in self.records:
            if record.is_best:
                return record
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sender_id": self.sender_id,
            "sender_name": self.sender_name,
            "sender_avatar": self.sender_avatar,
            "total_amount": format_amount(self.total_amount),
            "total_num": self.total_num,
            "wishes": self.wishes,
            "remain_amount": format_amount(self.remain_amount),
            "remain_num": self.remain_num,
            "records": [record.to_dict() for record in self.records],
            "created_at": self.created_at,
            "expired_at": self.expired_at,
        }


class PacketRecord(Base):
    __tablename__ = "red_packet_records"
    __table_args__ = (
        UniqueConstraint("packet_id", "user_id", name="uq_packet_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    packet_id = Column(String, ForeignKey("red_packets.id"), nullable=False)
    user_id = Column(String, nullable=False)
    user_name = Column(String, nullable=False)
    user_avatar = Column(String, nullable=False, default="")
    amount = Column(Integer, nullable=False)  # fen
    time = Column(BigInteger, nullable=False)  # Unix ms
    is_best = Column(Boolean, nullable=False, default=False)

    packet = relationship("RedPacket", back_populates="records")

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "user_name": self.user_name,
            "user_avatar": self.user_avatar,
            "amount": format_amount(self.amount),
            "time": self.time,
            "is_best": bool(self.is_best),
        }


class GrabStatus(StrEnum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    ALREADY_CLAIMED = "already_claimed"
    ERROR = "error"


@dataclass
class PacketCompletionInfo:
    """Summary of a packet that has just been fully claimed"""

    packet_id: str
    sender_id: str
    sender_name: str
    duration_seconds: int
    best_user_id: str
    best_user_name: str
    best_amount: int


@dataclass
class GrabResult:
    status: GrabStatus
    amount: Optional[int] = None  # fen; previous amount for ALREADY_CLAIMED
    is_best: bool = False
    completion: Optional[PacketCompletionInfo] = None

    @property
    def ok(self) -> bool:
        return self.status in (GrabStatus.SUCCESS, GrabStatus.ALREADY_CLAIMED)
