"""Quote model for priced proposals attached to a project."""
import enum
from datetime import date
from sqlalchemy import Column, String, Numeric, DateTime, Date, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rebath.database import Base, new_id


class QuoteStatus(enum.Enum):
    """
    Quote status.

    draft -> sent -> accepted | rejected. EXPIRED is never stored: it is
    derived on read from ``valid_until`` (see ``Quote.effective_status``).
    """
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class Quote(Base):
    """
    Quote (priced proposal).

    ``items`` is a JSON array of line items whose fields are copied from the
    catalog at selection time. subtotal, discount_amount, tax_amount and total
    are derived from the items and rates and are always written together.
    """

    __tablename__ = 'quotes'

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey('projects.id'), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey('profiles.id'), nullable=False)
    assessment_id = Column(String(36), ForeignKey('assessments.id'), nullable=True)
    quote_number = Column(String(32), nullable=False, unique=True)
    items = Column(JSON, nullable=False, default=list)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    tax_rate = Column(Numeric(6, 4), nullable=False, default=0)
    tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
    discount_percentage = Column(Numeric(6, 4), nullable=False, default=0)
    discount_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    valid_until = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=QuoteStatus.DRAFT.value)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    project = relationship('Project', back_populates='quotes')
    assessment = relationship('Assessment', foreign_keys=[assessment_id])

    def __repr__(self):
        return f"<Quote(id={self.id}, number='{self.quote_number}', status='{self.status}', total={self.total})>"

    def effective_status(self, today=None):
        """Stored status, or 'expired' when an open quote is past valid_until."""
        if self.is_expired_on(today or date.today()):
            return QuoteStatus.EXPIRED.value
        return self.status

    def is_expired_on(self, today):
        return (
            self.status in (QuoteStatus.DRAFT.value, QuoteStatus.SENT.value)
            and self.valid_until is not None
            and today > self.valid_until
        )

    @property
    def is_expired(self):
        """Check if quote is expired (calculated, not stored)."""
        return self.is_expired_on(date.today())

    @property
    def is_editable(self):
        return self.status == QuoteStatus.DRAFT.value

    @property
    def line_items(self):
        """Items parsed into ``QuoteItem`` objects."""
        from rebath.services.pricing import QuoteItem
        return [QuoteItem.from_dict(raw) for raw in (self.items or [])]

    def to_dict(self, today=None):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'user_id': self.user_id,
            'assessment_id': self.assessment_id,
            'quote_number': self.quote_number,
            'items': list(self.items or []),
            'subtotal': float(self.subtotal),
            'tax_rate': float(self.tax_rate),
            'tax_amount': float(self.tax_amount),
            'discount_percentage': float(self.discount_percentage),
            'discount_amount': float(self.discount_amount),
            'total': float(self.total),
            'valid_until': self.valid_until.isoformat() if self.valid_until else None,
            'status': self.status,
            'effective_status': self.effective_status(today),
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
