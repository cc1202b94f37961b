"""Remote SOS record store API (My Records)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from safecircle.core.errors import NotFoundError, ValidationError
from safecircle.db.session import get_db
from safecircle.schemas.sos import SOSRecord, SosRecordResponse
from safecircle.services.sos_record_service import list_sos_records, mark_safe, to_response, upsert_sos_record

router = APIRouter(prefix="/users/{user_id}/sos", tags=["sos"])


@router.put("/{sos_id}", response_model=SosRecordResponse)
def put_record(
    user_id: str,
    sos_id: str,
    data: SOSRecord,
    response: Response,
    db: Session = Depends(get_db),
):
    """Upsert by id. 201 on first delivery, 200 on re-delivery."""
    try:
        row, created = upsert_sos_record(db, user_id, sos_id, data)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return to_response(row)


@router.get("", response_model=list[SosRecordResponse])
def list_records(
    user_id: str,
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """List the user's SOS records, newest first."""
    return [to_response(r) for r in list_sos_records(db, user_id, limit)]


@router.post("/{sos_id}/safe", response_model=SosRecordResponse)
def mark_record_safe(
    user_id: str,
    sos_id: str,
    db: Session = Depends(get_db),
):
    """Mark an SOS record as resolved safe."""
    try:
        row = mark_safe(db, user_id, sos_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return to_response(row)
