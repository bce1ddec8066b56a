"""
Common mixins for multi-tenant models
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Uuid


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TenantMixin:
    """Mixin for multi-tenant models that adds tenant_id and ensures tenant isolation"""

    tenant_id = Column(Uuid(as_uuid=True), nullable=False, index=True)


class TimestampMixin:
    """Mixin for models that need timestamp tracking"""

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)


class BaseMixin(TenantMixin, TimestampMixin):
    """Combines tenant and timestamp functionality for most business models"""

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4, index=True)


class LiveCollectionMixin:
    """
    Marks a model as part of a live collection.

    Committed changes to rows of these models wake up the websocket
    subscribers of the returned topics.
    """

    __live_collection__: str = ""

    def live_topics(self) -> list:
        return [(str(self.tenant_id), self.__live_collection__)]
