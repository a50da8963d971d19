"""RoomType model."""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text
from sqlalchemy.sql import func
from rebath.database import Base, new_id


class RoomType(Base):
    """Room type an assessment can be run against (master bath, kitchen...)."""

    __tablename__ = 'room_types'

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(50), nullable=False, unique=True)
    display_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(20), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'display_name': self.display_name,
            'description': self.description,
            'icon': self.icon,
            'display_order': self.display_order,
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f"<RoomType(name='{self.name}')>"
