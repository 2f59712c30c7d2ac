"""Download log ORM model."""

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Integer, String, func

from database import Base


class DownloadLogModel(Base):
    __tablename__ = "download_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # No foreign keys: logs outlive purged files and anonymized accounts
    file_id = Column(String, nullable=False, index=True)
    account_id = Column(Integer, nullable=True, index=True)
    email = Column(String, nullable=False, default="")
    ip_address = Column(String, nullable=False, default="")
    user_agent = Column(String, nullable=False, default="")
    file_name = Column(String, nullable=False, default="")
    file_size = Column(BigInteger, nullable=False, default=0)
    is_authenticated = Column(Boolean, nullable=False, default=False)
    downloaded_at = Column(DateTime, default=func.now(), index=True)
