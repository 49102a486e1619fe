"""
Audit Log Database Model.

Tracks admin actions (locations, stages, users), logins and client page
views. Vehicle history is kept separately in notes.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from carlet.app.db.session import Base, utcnow


class AuditLog(Base):
    """
    Audit log model for tracking admin actions and user activity.

    Events logged:
    - LOCATION_CREATED / LOCATION_UPDATED / LOCATION_DEACTIVATED
    - STAGE_ADDED / STAGE_UPDATED / STAGE_REMOVED / STAGES_REORDERED
    - USER_CREATED / USER_UPDATED / USER_DEACTIVATED
    - LOGIN_SUCCESS / LOGIN_FAILED / LOGOUT
    - PAGE_VIEWED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(String(36), index=True, nullable=True)
    actor_email = Column(String(255), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # What it was performed on
    target_type = Column(String(50), nullable=True)
    target_id = Column(String(36), index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # IP address for login tracking
    ip_address = Column(String(50), nullable=True)

    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email}, target={self.target_type}:{self.target_id})>"
