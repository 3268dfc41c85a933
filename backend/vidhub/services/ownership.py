from __future__ import annotations

from typing import Any, TypeVar

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from vidhub.auth.identity import AuthContext

T = TypeVar("T")


def is_owner(resource: Any, identity: AuthContext | None) -> bool:
    """
    True when `resource.owner_id` is the caller's account id.
    """
    if identity is None or resource is None:
        return False
    owner_id = getattr(resource, "owner_id", None)
    return owner_id is not None and int(owner_id) == int(identity.id)


def get_or_404(db: Session, model: type[T], resource_id: int, *, label: str) -> T:
    obj = db.query(model).filter(model.id == resource_id).first()  # type: ignore[attr-defined]
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return obj


def get_owned_or_404(
    db: Session,
    model: type[T],
    resource_id: int,
    identity: AuthContext,
    *,
    label: str,
    action: str,
) -> T:
    """
    Missing -> 404 "<label> not found"
    Someone else's -> 403 "You are not authorized to <action>"
    """
    obj = get_or_404(db, model, resource_id, label=label)
    if not is_owner(obj, identity):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You are not authorized to {action}",
        )
    return obj
