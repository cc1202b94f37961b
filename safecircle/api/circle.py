"""Emergency circle API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from safecircle.core.errors import ConflictError, NotFoundError
from safecircle.db.session import get_db
from safecircle.schemas.circle import CircleMemberCreate, CircleMemberResponse
from safecircle.services.circle_service import add_member, group_by_category, list_members, remove_member

router = APIRouter(prefix="/users/{user_id}/circle", tags=["circle"])


@router.get("", response_model=dict[str, list[CircleMemberResponse]])
def get_circle(user_id: str, db: Session = Depends(get_db)):
    """Circle members grouped by category."""
    return group_by_category(list_members(db, user_id))


@router.post("", response_model=CircleMemberResponse, status_code=status.HTTP_201_CREATED)
def create_member(
    user_id: str,
    data: CircleMemberCreate,
    db: Session = Depends(get_db),
):
    try:
        return add_member(db, user_id, data)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_member(user_id: str, member_id: str, db: Session = Depends(get_db)):
    try:
        remove_member(db, user_id, member_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
