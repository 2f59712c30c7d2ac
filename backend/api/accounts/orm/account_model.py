"""Download account ORM model."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from database import Base


class DownloadAccountModel(Base):
    __tablename__ = "download_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    download_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=func.now())
    last_used_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    deleted_by = Column(String, nullable=True)
