"""
Note database model (vehicle audit trail).
"""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint
from carlet.app.db.session import Base, utcnow


class Note(Base):
    """
    Append-only annotation on a car.
    
    Transition notes are written by the workflow service; ``stage_name`` is
    a snapshot of the stage name when the note was created, not a live
    reference. ``correlation_id`` lets a client retry a transition
    without duplicating its note.
    """
    __tablename__ = "notes"
    __table_args__ = (
        UniqueConstraint("car_id", "correlation_id", name="uq_notes_car_correlation"),
    )
    
    id = Column(String(36), primary_key=True, index=True)
    car_id = Column(String(36), ForeignKey("cars.id"), nullable=False, index=True)
    
    content = Column(Text, nullable=False)
    author_name = Column(String(200), nullable=False, default="")
    stage_name = Column(String(200), nullable=False, default="")
    correlation_id = Column(String(100), nullable=True)
    
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    
    def __repr__(self):
        return f"<Note(id={self.id}, car_id={self.car_id}, stage='{self.stage_name}')>"
