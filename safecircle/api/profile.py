"""User profile and premium entitlement API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from safecircle.core.errors import NotFoundError
from safecircle.db.session import get_db
from safecircle.schemas.profile import PremiumGrant, ProfileResponse, ProfileUpdate
from safecircle.services.profile_service import get_profile, grant_premium, upsert_profile

router = APIRouter(prefix="/users/{user_id}", tags=["profile"])


@router.get("/profile", response_model=ProfileResponse)
def read_profile(user_id: str, db: Session = Depends(get_db)):
    try:
        return get_profile(db, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/profile", response_model=ProfileResponse)
def put_profile(user_id: str, data: ProfileUpdate, db: Session = Depends(get_db)):
    """Create or update the user's name and phone number."""
    return upsert_profile(db, user_id, data)


@router.post("/premium", response_model=ProfileResponse)
def post_premium(user_id: str, data: PremiumGrant, db: Session = Depends(get_db)):
    """Record premium entitlement after a succeeded card confirmation."""
    try:
        return grant_premium(db, user_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
