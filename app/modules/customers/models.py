from app.database.database import Base
from sqlalchemy import Column, String, ForeignKey, Uuid
from app.common.mixins import BaseMixin, LiveCollectionMixin


class Customer(Base, BaseMixin, LiveCollectionMixin):
    """Cliente de la organización."""
    __tablename__ = "customers"
    __live_collection__ = "customers"

    name = Column(String(200), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(100), nullable=True)
    address = Column(String(300), nullable=True)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
