"""FixtureOption model."""
from sqlalchemy import Column, String, Boolean, Numeric, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rebath.database import Base, new_id


class FixtureOption(Base):
    """
    Fixture Option (a purchasable catalog item).

    Never hard-deleted: retiring an option clears ``is_active``. Quotes keep
    their own snapshot of brand/model/prices, so edits here do not rewrite
    history.
    """

    __tablename__ = 'fixture_options'

    id = Column(String(36), primary_key=True, default=new_id)
    category_id = Column(String(36), ForeignKey('fixture_categories.id'), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    brand = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    size = Column(String(50), nullable=True)
    material = Column(String(50), nullable=True)
    color = Column(String(50), nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    installation_cost = Column(Numeric(10, 2), nullable=False, default=0)
    image_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    category = relationship('FixtureCategory', back_populates='options')

    def to_dict(self):
        return {
            'id': self.id,
            'category_id': self.category_id,
            'name': self.name,
            'description': self.description,
            'brand': self.brand,
            'model': self.model,
            'size': self.size,
            'material': self.material,
            'color': self.color,
            'base_price': float(self.base_price),
            'installation_cost': float(self.installation_cost or 0),
            'image_url': self.image_url,
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f"<FixtureOption(id={self.id}, name='{self.name}', brand='{self.brand}', model='{self.model}')>"
