"""Store configuration document: delivery fee policy, discount tiers, delivery slots."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, JSONDocument
from sqlalchemy import Boolean, DateTime, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column


class StoreConfig(Base):
    """Singleton per tenant (``tenant_id`` NULL for the default store).

    Slots are embedded in ``delivery_slots`` so every slot of a date is
    written together with the rest of the document. ``version`` is bumped on
    every UPDATE and checked in its WHERE clause, so two writers that read the
    same revision cannot both commit.
    """

    __tablename__ = "storefront_store_configs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )

    # {line1, line2, city, state, postal_code, country, latitude, longitude}
    store_address: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    # {"type": "flat", "base_fee": ...} | {"type": "per_km", "base_fee": ..., "rate": ...}
    delivery_fee: Mapped[dict] = mapped_column(JSONDocument, nullable=False)
    # [{discount_type, min_cart_value, value, max_discount_amount, priority}]
    cart_discounts: Mapped[list] = mapped_column(JSONDocument, default=list)
    # [{date, slots: [{start_time, end_time, capacity, booked}]}]
    delivery_slots: Mapped[list] = mapped_column(JSONDocument, default=list)
    is_delivery_enabled: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true"
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<StoreConfig tenant={self.tenant_id} v{self.version}>"


# NULL tenant_ids never collide under a plain UNIQUE, so the default store
# is folded onto '' to keep it to a single row as well
Index(
    "uq_storefront_store_configs_tenant",
    func.coalesce(StoreConfig.__table__.c.tenant_id, ""),
    unique=True,
)
