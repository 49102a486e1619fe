"""
Part database model.
"""

from sqlalchemy import Column, String, Integer, Float, Date, DateTime, Text, Enum, ForeignKey
from carlet.app.db.session import Base, utcnow
from carlet.app.models.enums import PartStatus


class Part(Base):
    """Procurement item tracked against a car."""
    __tablename__ = "parts"
    
    id = Column(String(36), primary_key=True, index=True)
    car_id = Column(String(36), ForeignKey("cars.id"), nullable=False, index=True)
    
    name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    status = Column(
        Enum(PartStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
        nullable=False,
        default=PartStatus.NEEDED,
    )
    vendor = Column(String(200), nullable=True)
    # Double precision, never rounded on write
    cost = Column(Float, nullable=True)
    eta = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    
    def __repr__(self):
        return f"<Part(id={self.id}, car_id={self.car_id}, name='{self.name}', status={self.status})>"
