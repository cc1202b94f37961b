"""User profile and premium entitlement service."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from safecircle.core.errors import NotFoundError
from safecircle.models.user_profile import UserProfile
from safecircle.schemas.profile import PremiumGrant, ProfileUpdate

logger = logging.getLogger(__name__)


def get_profile(db: Session, user_id: str) -> UserProfile:
    profile = db.get(UserProfile, user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


def upsert_profile(db: Session, user_id: str, data: ProfileUpdate) -> UserProfile:
    profile = db.get(UserProfile, user_id)
    if profile is None:
        profile = UserProfile(id=user_id, full_name="")
        db.add(profile)
    if data.full_name is not None:
        profile.full_name = data.full_name.strip()
    if data.phone_number is not None:
        profile.phone_number = data.phone_number.strip() or None
    db.commit()
    db.refresh(profile)
    return profile


def find_by_phone(db: Session, phone_number: str) -> UserProfile | None:
    stmt = select(UserProfile).where(UserProfile.phone_number == phone_number).limit(1)
    return db.execute(stmt).scalar_one_or_none()


def grant_premium(db: Session, user_id: str, grant: PremiumGrant) -> UserProfile:
    """Flip the premium flag and record last-payment metadata.

    The caller is responsible for having seen a "succeeded" confirmation.
    """
    profile = get_profile(db, user_id)
    paid_at = grant.paid_at or datetime.now(timezone.utc)
    if not profile.is_premium or profile.premium_plan != grant.plan_id:
        profile.premium_start_date = paid_at
    profile.is_premium = True
    profile.premium_plan = grant.plan_id
    profile.last_payment_amount = grant.amount
    profile.last_payment_date = paid_at
    db.commit()
    db.refresh(profile)
    logger.info("Premium plan %s granted to %s", grant.plan_id, user_id)
    return profile
