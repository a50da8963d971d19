"""ProjectPermission model - explicit grants on a project for non-owners."""
import enum
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rebath.database import Base, new_id


class PermissionType(enum.Enum):
    """Grant levels. ``edit`` and ``admin`` allow mutating the project's children."""
    VIEW = 'view'
    EDIT = 'edit'
    ADMIN = 'admin'


class ProjectPermission(Base):
    """
    Grant row. At most one per (project, user): re-sharing overwrites the
    previous grant instead of stacking. Ownership is never stored here.
    """

    __tablename__ = 'project_permissions'
    __table_args__ = (
        UniqueConstraint('project_id', 'user_id', name='uq_project_permissions_project_user'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey('projects.id'), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey('profiles.id'), nullable=False, index=True)
    permission_type = Column(String(10), nullable=False, default=PermissionType.VIEW.value)
    granted_by = Column(String(36), ForeignKey('profiles.id'), nullable=False)
    granted_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    project = relationship('Project', back_populates='permissions')

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'user_id': self.user_id,
            'permission_type': self.permission_type,
            'granted_by': self.granted_by,
            'granted_at': self.granted_at.isoformat() if self.granted_at else None,
        }

    def __repr__(self):
        return f"<ProjectPermission(project_id={self.project_id}, user_id={self.user_id}, type='{self.permission_type}')>"
