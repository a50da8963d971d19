"""Project model - the root business entity quotes and assessments attach to."""
import enum
from sqlalchemy import Column, String, Numeric, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rebath.database import Base, new_id


class ProjectType(enum.Enum):
    BATHROOM = 'bathroom'
    KITCHEN = 'kitchen'
    FULL_REMODEL = 'full_remodel'


class ProjectStatus(enum.Enum):
    """
    Project status. Transitions are unconstrained: any status may be set
    from any other (reopening a completed project is a normal workflow).
    """
    ASSESSMENT = 'assessment'
    QUOTE_READY = 'quote_ready'
    STARTED = 'started'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class ProjectPriority(enum.Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    URGENT = 'urgent'


class Project(Base):
    """
    Project (remodeling job for one client address).

    Deleting a project deletes its assessments, quotes, work items and
    permission grants in the same transaction.
    """

    __tablename__ = 'projects'

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey('profiles.id'), nullable=False, index=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=False)
    project_type = Column(String(20), nullable=False, default=ProjectType.BATHROOM.value)
    status = Column(String(20), nullable=False, default=ProjectStatus.ASSESSMENT.value)
    priority = Column(String(20), nullable=False, default=ProjectPriority.MEDIUM.value)
    estimated_start_date = Column(Date, nullable=True)
    estimated_completion_date = Column(Date, nullable=True)
    actual_start_date = Column(Date, nullable=True)
    actual_completion_date = Column(Date, nullable=True)
    total_budget = Column(Numeric(14, 2), nullable=True)
    job_description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship('Profile', foreign_keys=[user_id])
    assessments = relationship('Assessment', back_populates='project', cascade='all, delete-orphan')
    quotes = relationship('Quote', back_populates='project', cascade='all, delete-orphan')
    permissions = relationship('ProjectPermission', back_populates='project', cascade='all, delete-orphan')
    work_items = relationship('JobWorkItem', back_populates='project', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'client_name': self.client_name,
            'client_email': self.client_email,
            'client_phone': self.client_phone,
            'address': self.address,
            'project_type': self.project_type,
            'status': self.status,
            'priority': self.priority,
            'estimated_start_date': _iso(self.estimated_start_date),
            'estimated_completion_date': _iso(self.estimated_completion_date),
            'actual_start_date': _iso(self.actual_start_date),
            'actual_completion_date': _iso(self.actual_completion_date),
            'total_budget': float(self.total_budget) if self.total_budget is not None else None,
            'job_description': self.job_description,
            'notes': self.notes,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Project(id={self.id}, client='{self.client_name}', status='{self.status}')>"


def _iso(value):
    return value.isoformat() if value is not None else None
