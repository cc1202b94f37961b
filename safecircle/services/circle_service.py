"""Emergency circle service."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from safecircle.core.errors import ConflictError, NotFoundError
from safecircle.models.circle_member import CircleMember
from safecircle.schemas.circle import CircleCategory, CircleMemberCreate
from safecircle.services.profile_service import find_by_phone

logger = logging.getLogger(__name__)


def list_members(db: Session, owner_id: str) -> list[CircleMember]:
    stmt = select(CircleMember).where(CircleMember.owner_id == owner_id).order_by(CircleMember.added_at)
    return list(db.execute(stmt).scalars().all())


def group_by_category(members: list[CircleMember]) -> dict[str, list[CircleMember]]:
    """Every category appears, in display order, even when empty."""
    groups: dict[str, list[CircleMember]] = {c.value: [] for c in CircleCategory}
    for m in members:
        groups.setdefault(m.category, []).append(m)
    return groups


def add_member(db: Session, owner_id: str, data: CircleMemberCreate) -> CircleMember:
    """Add a contact. A phone number may appear once per circle."""
    stmt = select(CircleMember).where(
        CircleMember.owner_id == owner_id,
        CircleMember.phone_number == data.phone_number,
    )
    if db.execute(stmt).scalar_one_or_none():
        raise ConflictError("Phone number already in circle")

    registered = find_by_phone(db, data.phone_number) is not None
    member = CircleMember(
        owner_id=owner_id,
        name=data.name,
        phone_number=data.phone_number,
        category=data.category.value,
        profile_picture=data.profile_picture,
        is_registered=registered,
    )
    db.add(member)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Phone number already in circle") from exc
    db.refresh(member)
    logger.info("Circle member added for %s (registered=%s)", owner_id, registered)
    return member


def remove_member(db: Session, owner_id: str, member_id: str) -> None:
    member = db.get(CircleMember, member_id)
    if member is None or member.owner_id != owner_id:
        raise NotFoundError("Circle member not found")
    db.delete(member)
    db.commit()
