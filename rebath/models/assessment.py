"""Assessment model - one room survey tied to a project."""
import enum
from sqlalchemy import Column, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rebath.database import Base, new_id


class AssessmentStatus(enum.Enum):
    DRAFT = 'draft'
    SUBMITTED = 'submitted'
    REVIEWED = 'reviewed'


class Assessment(Base):
    """
    Assessment (room survey).

    ``fixtures`` holds the fixtures found in the room, ``measurements`` the
    width/length/height (+ notes) and ``photos`` the public URLs of uploaded
    pictures, all as JSON.
    """

    __tablename__ = 'assessments'

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey('projects.id'), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey('profiles.id'), nullable=False)
    room_type = Column(String(50), nullable=False)
    room_name = Column(String(200), nullable=False)
    fixtures = Column(JSON, nullable=False, default=list)
    measurements = Column(JSON, nullable=False, default=dict)
    photos = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=AssessmentStatus.DRAFT.value)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    project = relationship('Project', back_populates='assessments')

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'user_id': self.user_id,
            'room_type': self.room_type,
            'room_name': self.room_name,
            'fixtures': list(self.fixtures or []),
            'measurements': dict(self.measurements or {}),
            'photos': list(self.photos or []),
            'notes': self.notes,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Assessment(id={self.id}, room='{self.room_name}', status='{self.status}')>"
