from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.availability import Availability
from app.models.event import Event
from app.schemas.availability import (
    Availability as AvailabilitySchema,
    AvailabilityCreate,
    AvailabilityUpdate,
)

router = APIRouter(prefix="/admin/availabilities", tags=["Admin - Availabilities"])


def _get_availability(id: UUID, db: Session) -> Availability:
    availability = db.query(Availability).filter(Availability.id == id).first()
    if not availability:
        raise HTTPException(status_code=404, detail="Availability not found")
    return availability


@router.get("/", response_model=List[AvailabilitySchema])
def list_availabilities(db: Session = Depends(get_db)):
    return db.query(Availability).order_by(Availability.title).all()


@router.get("/{id}", response_model=AvailabilitySchema)
def get_availability(id: UUID, db: Session = Depends(get_db)):
    return _get_availability(id, db)


@router.post("/", response_model=AvailabilitySchema, status_code=status.HTTP_201_CREATED)
def create_availability(data: AvailabilityCreate, db: Session = Depends(get_db)):
    """
    Create a weekly rule document. Day keys may be English or Italian labels;
    they are stored under canonical English keys ("monday" ... "sunday").
    """
    availability = Availability(**data.model_dump(mode="json"))
    db.add(availability)
    db.commit()
    db.refresh(availability)
    return availability


@router.patch("/{id}", response_model=AvailabilitySchema)
def update_availability(id: UUID, data: AvailabilityUpdate, db: Session = Depends(get_db)):
    """Rename and/or replace the whole rule document. Existing bookings are not touched."""
    availability = _get_availability(id, db)

    for field, value in data.model_dump(mode="json", exclude_unset=True).items():
        if value is None:
            continue
        setattr(availability, field, value)

    db.commit()
    db.refresh(availability)
    return availability


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_availability(id: UUID, db: Session = Depends(get_db)):
    availability = _get_availability(id, db)

    in_use = db.query(Event.id).filter(Event.availability_id == id).count()
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Availability is used by {in_use} event(s); reassign them first",
        )

    db.delete(availability)
    db.commit()
    return {"id": str(id), "message": "Availability deleted."}
