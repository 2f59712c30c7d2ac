"""File ORM model."""

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Integer, String, func

from database import Base


class FileModel(Base):
    __tablename__ = "files"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    filepath = Column(String, nullable=False)
    size = Column(BigInteger, default=0)
    content_type = Column(String, nullable=False, default="application/octet-stream")
    sha1 = Column(String, nullable=False, default="")
    owner_id = Column(Integer, nullable=False, index=True)
    expire_at = Column(DateTime, nullable=True)
    unlimited_time = Column(Boolean, nullable=False, default=False)
    downloads_remaining = Column(Integer, nullable=False, default=0)
    unlimited_downloads = Column(Boolean, nullable=False, default=False)
    download_count = Column(Integer, nullable=False, default=0)
    # Fernet token, never a hash: owners can read it back
    password_encrypted = Column(String, nullable=True)
    require_auth = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=func.now())
    deleted_at = Column(DateTime, nullable=True, index=True)
    deleted_by = Column(Integer, nullable=True)
