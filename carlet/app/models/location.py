"""
Location database model.

A location is a tenant shop. It owns an ordered stage pipeline, stored as
a JSON list and versioned so every write replaces the whole list
atomically.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Integer, JSON
from carlet.app.db.session import Base, utcnow


class Location(Base):
    """
    Location model.
    
    ``stages`` holds ``[{"id", "name", "color"}, ...]`` in pipeline order.
    Use ``carlet.app.domain.workflow.stages`` to work with it as Stage
    values; never mutate the list in place.
    """
    __tablename__ = "locations"
    
    id = Column(String(36), primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    timezone = Column(String(64), nullable=False, default="UTC")
    stages = Column(JSON, nullable=False, default=list)
    
    # Status (soft delete)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    
    # Optimistic concurrency counter
    version = Column(Integer, nullable=False, default=1)
    
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    
    __mapper_args__ = {"version_id_col": version}
    
    def __repr__(self):
        return f"<Location(id={self.id}, name='{self.name}', stages={len(self.stages or [])})>"
