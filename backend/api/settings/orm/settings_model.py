"""Setting ORM model."""

from sqlalchemy import Column, DateTime, String, func

from database import Base


class SettingModel(Base):
    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False, default="")
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
