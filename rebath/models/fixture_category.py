"""FixtureCategory model."""
from sqlalchemy import Column, String, Integer, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rebath.database import Base, new_id


class FixtureCategory(Base):
    """Fixture Category (Faucets, Toilets, Vanities...)."""

    __tablename__ = 'fixture_categories'

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    options = relationship('FixtureOption', back_populates='category')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'display_order': self.display_order,
        }

    def __repr__(self):
        return f"<FixtureCategory(id={self.id}, name='{self.name}')>"
