"""JobWorkItem model - scoped work to be done on a project, per room."""
import enum
from sqlalchemy import Column, String, Numeric, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rebath.database import Base, new_id


class WorkItemPriority(enum.Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'


class WorkItemStatus(enum.Enum):
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class JobWorkItem(Base):
    """Job Work Item."""

    __tablename__ = 'job_work_items'

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey('projects.id'), nullable=False, index=True)
    room_type = Column(String(50), nullable=False)
    work_description = Column(Text, nullable=False)
    estimated_hours = Column(Numeric(6, 2), nullable=True)
    priority = Column(String(10), nullable=False, default=WorkItemPriority.MEDIUM.value)
    status = Column(String(20), nullable=False, default=WorkItemStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    project = relationship('Project', back_populates='work_items')

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'room_type': self.room_type,
            'work_description': self.work_description,
            'estimated_hours': float(self.estimated_hours) if self.estimated_hours is not None else None,
            'priority': self.priority,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<JobWorkItem(id={self.id}, room='{self.room_type}', status='{self.status}')>"
