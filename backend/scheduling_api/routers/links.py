# backend/scheduling_api/routers/links.py
# Links are immutable: PATCH = 405, DELETE = ALLOWED (hard, bookings cascade)

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.links import LinkRead
from ..services import scheduling_links

router = APIRouter(prefix="/links", tags=["links"])


@router.get("/by-slug/{slug}", response_model=LinkRead)
def get_link_by_slug(slug: str, db: Session = Depends(get_db)):
    return scheduling_links.get_link_by_slug(db, slug)


@router.get("/{id}", response_model=LinkRead)
def get_link(id: int, db: Session = Depends(get_db)):
    return scheduling_links.get_link(db, id)


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_link(id: int, db: Session = Depends(get_db)):
    scheduling_links.delete_link(db, id)
