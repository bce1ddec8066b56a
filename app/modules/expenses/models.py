from app.database.database import Base
from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric, Text, Uuid
from app.common.mixins import BaseMixin, LiveCollectionMixin, utc_now
import enum


class ExpenseCategory(enum.Enum):
    RENT = "Rent"
    SALARIES = "Salaries"
    UTILITIES = "Utilities"
    MARKETING = "Marketing"
    PURCHASES = "Purchases"
    OTHER = "Other"


class Expense(Base, BaseMixin, LiveCollectionMixin):
    __tablename__ = "expenses"
    __live_collection__ = "expenses"

    category = Column(String(20), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    description = Column(Text, nullable=False)
    vendor = Column(String(200), nullable=True)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
