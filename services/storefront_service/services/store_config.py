"""Store config persistence: lazy creation, admin replacement and slot writes.

Slot counters are changed under a row lock (``SELECT ... FOR UPDATE``) and
written back with a version-checked UPDATE, so concurrent reservations of the
last seat in a window cannot both succeed.
"""

from decimal import Decimal
from typing import Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger
from pydantic import ValidationError
from services.storefront_service.errors import (
    ConcurrentUpdateError,
    SlotError,
    StoreConfigError,
    StoreConfigNotFoundError,
)
from services.storefront_service.models import StoreConfig
from services.storefront_service.schemas import (
    FlatDeliveryFee,
    FlatDiscountTier,
    StoreAddress,
    StoreConfigDocument,
    StoreConfigUpdate,
    TimeWindow,
)
from services.storefront_service.services.slots import DateLike, release_slot, reserve_slot
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

logger = get_logger(__name__)

DOCUMENT_FIELDS = (
    "store_address",
    "delivery_fee",
    "cart_discounts",
    "delivery_slots",
    "is_delivery_enabled",
)


def default_config_document() -> StoreConfigDocument:
    """Configuration a tenant gets on first read."""
    return StoreConfigDocument(
        store_address=StoreAddress(
            line1="12 MG Road",
            city="Pune",
            state="Maharashtra",
            postal_code="411001",
            country="India",
        ),
        delivery_fee=FlatDeliveryFee(base_fee=get_settings().DEFAULT_DELIVERY_FEE),
        cart_discounts=[
            FlatDiscountTier(
                discount_type="flat",
                min_cart_value=Decimal("1000"),
                value=Decimal("100"),
                priority=10,
            )
        ],
        delivery_slots=[],
        is_delivery_enabled=True,
    )


def load_document(config: StoreConfig) -> StoreConfigDocument:
    """Validate the stored JSON; a malformed document is a configuration error."""
    try:
        return StoreConfigDocument.model_validate(
            {field: getattr(config, field) for field in DOCUMENT_FIELDS}
        )
    except ValidationError as exc:
        logger.error(
            "Store config %s (tenant=%s) is malformed: %s",
            config.id,
            config.tenant_id,
            exc,
        )
        raise StoreConfigError() from exc


def apply_document(
    config: StoreConfig,
    document: StoreConfigDocument,
    fields: tuple[str, ...] = DOCUMENT_FIELDS,
) -> None:
    data = document.model_dump(mode="json", include=set(fields))
    for field in fields:
        setattr(config, field, data[field])


def _tenant_clause(tenant_id: Optional[str]):
    if tenant_id is None:
        return StoreConfig.tenant_id.is_(None)
    return StoreConfig.tenant_id == tenant_id


async def find_config(
    db: AsyncSession,
    tenant_id: Optional[str] = None,
    *,
    for_update: bool = False,
) -> Optional[StoreConfig]:
    query = select(StoreConfig).where(_tenant_clause(tenant_id))
    if for_update:
        # Locked reads must see the committed row, not the identity map copy
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalars().first()


async def get_or_create_config(
    db: AsyncSession,
    tenant_id: Optional[str] = None,
    *,
    for_update: bool = False,
) -> StoreConfig:
    """Return the tenant's config, creating the default one if missing.

    The new row is flushed, not committed; the caller's commit persists it.
    """
    config = await find_config(db, tenant_id, for_update=for_update)
    if config is not None:
        return config

    config = StoreConfig(tenant_id=tenant_id)
    apply_document(config, default_config_document())
    db.add(config)
    try:
        await db.flush()
    except IntegrityError as exc:
        # Another request created it between our read and our insert
        await db.rollback()
        raise ConcurrentUpdateError() from exc

    logger.info("Created default store config for tenant=%s", tenant_id)
    return config


async def commit_config_write(db: AsyncSession) -> None:
    """Commit, turning a lost version race into ConcurrentUpdateError."""
    try:
        await db.commit()
    except StaleDataError as exc:
        await db.rollback()
        raise ConcurrentUpdateError() from exc


async def update_store_config(
    db: AsyncSession, update: StoreConfigUpdate
) -> StoreConfig:
    """Replace every top-level field present in ``update``; upserts the row."""
    config = await get_or_create_config(db, update.tenant_id, for_update=True)

    fields = tuple(
        field
        for field in DOCUMENT_FIELDS
        if field in update.model_fields_set and getattr(update, field) is not None
    )
    if fields:
        data = update.model_dump(mode="json", include=set(fields))
        for field in fields:
            setattr(config, field, data[field])

    await commit_config_write(db)
    await db.refresh(config)
    logger.info(
        "Store config updated for tenant=%s fields=%s version=%s",
        config.tenant_id,
        ",".join(fields) or "-",
        config.version,
    )
    return config


def save_slots(config: StoreConfig, document: StoreConfigDocument) -> None:
    apply_document(config, document, fields=("delivery_slots",))


async def reserve_slot_atomic(
    db: AsyncSession,
    tenant_id: Optional[str],
    slot_date: DateLike,
    start_time: str,
    *,
    commit: bool = True,
) -> TimeWindow:
    """Book one seat in a window of the tenant's config.

    Raises StoreConfigNotFoundError when the tenant has no config and the
    SlotError subclasses when the date/window is unknown or full; nothing is
    written in those cases.
    """
    config = await find_config(db, tenant_id, for_update=True)
    if config is None:
        raise StoreConfigNotFoundError()

    document = load_document(config)
    window = reserve_slot(document.delivery_slots, slot_date, start_time)
    save_slots(config, document)

    if commit:
        await commit_config_write(db)

    logger.info(
        "Reserved slot %s %s for tenant=%s (%d/%d)",
        slot_date,
        start_time,
        tenant_id,
        window.booked,
        window.capacity,
    )
    return window


async def release_slot_atomic(
    db: AsyncSession,
    tenant_id: Optional[str],
    slot_date: DateLike,
    start_time: str,
    *,
    commit: bool = True,
) -> bool:
    """Give back one seat. Best effort: returns False instead of failing when
    the config, the date or the window no longer exists, or nothing is booked.
    """
    config = await find_config(db, tenant_id, for_update=True)
    if config is None:
        logger.info("Slot release skipped: no store config for tenant=%s", tenant_id)
        return False

    document = load_document(config)
    try:
        released = release_slot(document.delivery_slots, slot_date, start_time)
    except SlotError as exc:
        logger.info("Slot release skipped for %s %s: %s", slot_date, start_time, exc)
        return False

    if not released:
        return False

    save_slots(config, document)
    if commit:
        await commit_config_write(db)

    logger.info("Released slot %s %s for tenant=%s", slot_date, start_time, tenant_id)
    return True
