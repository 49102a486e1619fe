"""
Car (vehicle record) database model.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Integer, JSON, ForeignKey
from carlet.app.db.session import Base, utcnow


class Car(Base):
    """
    A vehicle moving through its location's stage pipeline.
    
    ``current_stage_id`` is either null or the id of a stage in the owning
    location's list. Image lists are replaced wholesale on every change
    and guarded by ``version`` so concurrent uploads cannot clobber each
    other.
    """
    __tablename__ = "cars"
    
    id = Column(String(36), primary_key=True, index=True)
    
    # Descriptive attributes
    vin = Column(String(17), nullable=True, index=True)
    year = Column(Integer, nullable=True)
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    trim = Column(String(100), nullable=True)
    license_plate = Column(String(20), nullable=True, index=True)
    customer_name = Column(String(200), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_email = Column(String(255), nullable=True)
    
    # Workflow attributes
    location_id = Column(String(36), ForeignKey("locations.id"), nullable=False, index=True)
    current_stage_id = Column(String(36), nullable=True, index=True)
    last_activity = Column(DateTime(timezone=True), nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False, index=True)
    
    # Media
    check_in_images = Column(JSON, nullable=False, default=list)
    check_out_images = Column(JSON, nullable=False, default=list)
    
    version = Column(Integer, nullable=False, default=1)
    
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    
    __mapper_args__ = {"version_id_col": version}
    
    def __repr__(self):
        return f"<Car(id={self.id}, vin='{self.vin}', stage={self.current_stage_id}, archived={self.is_archived})>"
