from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Text

from src.common.database.db_connector import Base
from src.common.utils.time_utils import utcnow


class Lead(Base):
    """CRM lead created alongside a rate alert."""
    __tablename__ = 'leads'

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    property_address = Column(Text, nullable=True)
    loan_amount = Column(Float, nullable=True)
    loan_type = Column(String(50), nullable=True)
    target_rate = Column(Float, nullable=True)
    lead_source = Column(String(50), nullable=False)
    lead_score = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="new")
    alert_id = Column(String(36), ForeignKey('rate_alerts.id'), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
