"""Team, membership and team share ORM models."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)

from database import Base


class TeamModel(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=func.now())
    is_active = Column(Boolean, nullable=False, default=True)


class TeamMemberModel(Base):
    __tablename__ = "team_members"
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="uq_team_member"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    role = Column(String, nullable=False, default="member")
    added_by = Column(Integer, nullable=True)
    joined_at = Column(DateTime, default=func.now())


class TeamFileModel(Base):
    __tablename__ = "team_files"
    __table_args__ = (UniqueConstraint("file_id", "team_id", name="uq_team_file"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_id = Column(String, nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    shared_by = Column(Integer, nullable=False)
    shared_at = Column(DateTime, default=func.now())
