# app/models/gig.py
import uuid
from sqlalchemy import Column, String, TEXT, DECIMAL, INT, ForeignKey, CHAR
from app.core.database import Base, PreciseDateTime
from app.utils.clock import utcnow

class Gig(Base):
    __tablename__ = "gigs"

    gig_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    seller_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(TEXT, default="")
    price = Column(DECIMAL(10, 2), nullable=False)
    delivery_time = Column(INT, default=0)  # days
    created_at = Column(PreciseDateTime, default=utcnow)

