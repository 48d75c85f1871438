import uuid
from enum import StrEnum
from typing import List, Optional
from sqlalchemy import create_engine
from sqlalchemy import Column, String, UniqueConstraint
from sqlalchemy.orm import declarative_base, scoped_session, sessionmaker


Base = declarative_base()


class MemberType(StrEnum):
    MAIN = "main"  # 角色卡主角色
    PRESET = "preset"  # 预设 NPC
    CUSTOM = "custom"  # 自建 NPC


class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("channel_id", "name", name="uq_channel_member_name"),
    )

    channel_id = Column(String, primary_key=True)
    member_id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    avatar = Column(String, nullable=False, default="")
    type = Column(String, nullable=False, default=MemberType.CUSTOM)


class GroupMemberManager:
    def __init__(self, database_url: str):
        # 设置数据库引擎和会话
        self.engine = create_engine(database_url)
        Base.metadata.create_all(self.engine)
        self.Session = scoped_session(
            sessionmaker(bind=self.engine, expire_on_commit=False)
        )

    def add_member(
        self,
        channel_id: str,
        name: str,
        avatar: Optional[str] = None,
        member_type: MemberType = MemberType.CUSTOM,
        member_id: Optional[str] = None,
    ) -> Optional[GroupMember]:
        """添加模拟成员到群聊

        Args:
            channel_id (str): 群聊ID
            name (str): 成员名称，同一群聊内唯一
            avatar (Optional[str], optional): 成员头像URL. Defaults to None.
            member_type (MemberType, optional): 成员类型. Defaults to CUSTOM.
            member_id (Optional[str], optional): 成员ID，不提供则自动生成.

        Returns:
            Optional[GroupMember]: 新成员，同名成员已存在时返回 None
        """
        with self.Session() as session:
            existing = (
                session.query(GroupMember)
                .filter_by(channel_id=channel_id, name=name)
                .first()
            )
            if existing:
                return None

            member = GroupMember(
                channel_id=channel_id,
                member_id=member_id or f"char_{uuid.uuid4().hex[:8]}",
                name=name,
                avatar=avatar or "",
                type=member_type,
            )
            session.add(member)
            session.commit()
            return member

    def remove_member(self, channel_id: str, name: str) -> bool:
        """按名称从群聊移除成员

        Returns:
            bool: 是否移除成功
        """
        with self.Session() as session:
            member = (
                session.query(GroupMember)
                .filter_by(channel_id=channel_id, name=name)
                .first()
            )
            if member:
                session.delete(member)
                session.commit()
                return True
            return False

    def get_members(self, channel_id: str) -> List[GroupMember]:
        """获取群聊的所有模拟成员"""
        with self.Session() as session:
            return (
                session.query(GroupMember)
                .filter_by(channel_id=channel_id)
                .order_by(GroupMember.name)
                .all()
            )

    def get_member(self, channel_id: str, name: str) -> Optional[GroupMember]:
        with self.Session() as session:
            return (
                session.query(GroupMember)
                .filter_by(channel_id=channel_id, name=name)
                .first()
            )

    def clear_channel(self, channel_id: str) -> int:
        """删除群聊的全部成员

        Returns:
            int: 删除的成员数
        """
        with self.Session() as session:
            count = (
                session.query(GroupMember)
                .filter_by(channel_id=channel_id)
                .delete()
            )
            session.commit()
            return count
