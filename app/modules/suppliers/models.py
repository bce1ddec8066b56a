from app.database.database import Base
from sqlalchemy import Column, String, ForeignKey, Uuid
from app.common.mixins import BaseMixin, LiveCollectionMixin


class Supplier(Base, BaseMixin, LiveCollectionMixin):
    """Proveedor de mercadería."""
    __tablename__ = "suppliers"
    __live_collection__ = "suppliers"

    name = Column(String(200), nullable=False, index=True)
    contact_person = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(100), nullable=True)
    address = Column(String(300), nullable=True)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
