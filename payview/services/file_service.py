import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from payview.config import settings
from payview.exceptions import AuthorizationError, NotPurchasableError, ValidationError
from payview.models.collection import FileCollection
from payview.models.file import File
from payview.schemas.file_schemas import CreateFileRecordsRequest, FileRecordIn
from payview.services.payment_gateway import PaymentGateway
from payview.services.profile_service import get_profile
from payview.services.storage import owned_key
from payview.utils.clock import utcnow
from payview.utils.slug import generate_unique_slug, is_valid_slug
from payview.utils.token import Identity

logger = logging.getLogger(__name__)


def _owned_by(creator_id: Optional[str], identity: Identity) -> str:
    if creator_id and creator_id != identity.user_id:
        raise AuthorizationError()
    return identity.user_id


def _slug_for(explicit: Optional[str], fallback_text: str) -> str:
    if explicit:
        if not is_valid_slug(explicit):
            raise ValidationError(f"Invalid slug: {explicit}")
        return explicit
    return generate_unique_slug(fallback_text)


def _file_from_record(record: FileRecordIn, creator_id: str, collection_id: Optional[int]) -> File:
    if owned_key(creator_id, record.file_url) is None:
        raise AuthorizationError("File must be uploaded by its creator")
    title = record.title or record.file_name.rsplit(".", 1)[0]
    return File(
        creator_id=creator_id,
        collection_id=collection_id,
        file_name=record.file_name,
        storage_key=record.file_url,
        file_size_bytes=record.file_size,
        content_type=record.content_type,
        title=title,
        slug=_slug_for(record.slug, title),
        description=record.description,
        price_cents=0,
        currency=settings.currency,
        expires_at=record.expires_at,
        access_duration_days=record.access_duration_days,
        screenshot_protection=record.screenshot_protection,
    )


def create_file_records(
    session: Session, identity: Identity, payload: CreateFileRecordsRequest
) -> List[File]:
    """
    Register uploaded objects as files, optionally grouped into a new series.
    Files start unpriced; a price is provisioned separately.
    """
    collection_id = None
    collection = None
    if payload.group and payload.series and payload.series.title:
        series = payload.series
        collection = FileCollection(
            creator_id=_owned_by(series.creator_id, identity),
            title=series.title,
            slug=_slug_for(series.slug, series.title),
            description=series.description or None,
            price_cents=0,
        )

    files = []
    for record in payload.files:
        files.append(_file_from_record(record, _owned_by(record.creator_id, identity), None))

    try:
        if collection is not None:
            session.add(collection)
            session.flush()
            collection_id = collection.id
            for file in files:
                file.collection_id = collection_id
        session.add_all(files)
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ValidationError("Slug already in use") from exc

    for file in files:
        session.refresh(file)

    logger.info(f"Created {len(files)} file record(s) for {identity.user_id}", extra={"user_id": identity.user_id})
    return files


def get_owned_file(session: Session, file_id: int, identity: Identity) -> File:
    file = session.get(File, file_id)
    if file is None or file.creator_id != identity.user_id:
        raise AuthorizationError()
    return file


def provision_price(
    session: Session,
    gateway: PaymentGateway,
    identity: Identity,
    file_id: int,
    price_cents: int,
    currency: Optional[str] = None,
) -> File:
    """
    Create the Stripe product and price on the creator's connected account.
    Stripe prices are immutable, so once a price exists the file's price and
    currency are frozen.
    """
    file = get_owned_file(session, file_id, identity)

    if file.price_locked:
        raise ValidationError("Price can no longer be changed for this file")
    if price_cents <= 0:
        raise ValidationError("Price must be greater than zero")

    profile = get_profile(session, identity.user_id)
    if profile is None or not profile.stripe_account_id:
        raise NotPurchasableError("Connect a payout account before setting a price")

    currency = (currency or file.currency or settings.currency).lower()
    provisioned = gateway.create_product_price(
        account_id=profile.stripe_account_id,
        title=file.title,
        price_cents=price_cents,
        currency=currency,
    )

    file.price_cents = price_cents
    file.currency = currency
    file.stripe_product_id = provisioned.product_id
    file.stripe_price_id = provisioned.price_id
    file.updated_at = utcnow()
    session.add(file)
    session.commit()
    session.refresh(file)

    logger.info(f"Price {provisioned.price_id} provisioned for file {file.id}", extra={"file_id": file.id})
    return file


def deactivate_file(session: Session, identity: Identity, file_id: int) -> File:
    """Soft delete; rows stay because transactions reference them."""
    file = get_owned_file(session, file_id, identity)
    file.is_active = False
    file.updated_at = utcnow()
    session.add(file)
    session.commit()
    session.refresh(file)
    return file
