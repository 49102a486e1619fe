"""
Record of an uploaded file.
"""

from sqlalchemy import Column, String, DateTime
from carlet.app.db.session import Base, utcnow


class StoredFile(Base):
    __tablename__ = "files"
    
    id = Column(String(36), primary_key=True, index=True)
    filename = Column(String(255), nullable=False)
    url = Column(String(500), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    
    def __repr__(self):
        return f"<StoredFile(id={self.id}, url='{self.url}')>"
