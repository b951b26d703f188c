# stratguru/api/setup_types.py
"""
Per-user setup registry. Codes are 2-6 uppercase alphanumerics and never change.
"""
from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Body, Query, status
from typing import List, Optional
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..db.session import get_db
from ..db import crud
from ..db.models import SetupType
from ..utils.jwt_deps import get_current_user_id_dep
from ..utils.error_handler import handle_database_error, handle_not_found_error

router = APIRouter(prefix="/setup-types", tags=["setup-types"])


class CreateSetupTypeRequest(BaseModel):
    code: str
    name: str = Field(..., min_length=1, max_length=128)
    description: Optional[str] = None


class UpdateSetupTypeRequest(BaseModel):
    # code is immutable
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    description: Optional[str] = None


class SetupTypeResponse(BaseModel):
    id: str
    code: str
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    class Config:
        from_attributes = True


def setup_type_response(setup: SetupType) -> SetupTypeResponse:
    return SetupTypeResponse(
        id=setup.id,
        code=setup.code,
        name=setup.name,
        description=setup.description,
        is_active=setup.is_active,
        created_at=setup.created_at.isoformat() if setup.created_at else None,
        updated_at=setup.updated_at.isoformat() if setup.updated_at else None,
    )


def _get_owned(db: Session, user_id: str, setup_id: str) -> SetupType:
    setup = crud.get_setup_type(db, user_id, setup_id)
    if not setup:
        raise handle_not_found_error("Setup type", setup_id)
    return setup


@router.post("", response_model=SetupTypeResponse, status_code=status.HTTP_201_CREATED)
def create_setup_type(
    data: CreateSetupTypeRequest = Body(...),
    user_id: str = Depends(get_current_user_id_dep),
    db: Session = Depends(get_db)
):
    try:
        setup = crud.create_setup_type(db, user_id, data.code, data.name, data.description)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Setup code '{data.code.strip().upper()}' already exists"
        )
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "create setup type")
    return setup_type_response(setup)


@router.get("", response_model=List[SetupTypeResponse])
def list_setup_types(
    active_only: bool = Query(False, description="Only return active setups"),
    user_id: str = Depends(get_current_user_id_dep),
    db: Session = Depends(get_db)
):
    return [setup_type_response(s) for s in crud.list_setup_types(db, user_id, active_only=active_only)]


@router.get("/{setup_id}", response_model=SetupTypeResponse)
def get_setup_type(
    setup_id: str,
    user_id: str = Depends(get_current_user_id_dep),
    db: Session = Depends(get_db)
):
    return setup_type_response(_get_owned(db, user_id, setup_id))


@router.patch("/{setup_id}", response_model=SetupTypeResponse)
def update_setup_type(
    setup_id: str,
    data: UpdateSetupTypeRequest = Body(...),
    user_id: str = Depends(get_current_user_id_dep),
    db: Session = Depends(get_db)
):
    """Rename or re-describe a setup. The code cannot be changed."""
    setup = _get_owned(db, user_id, setup_id)
    return setup_type_response(crud.update_setup_type(db, setup, name=data.name, description=data.description))


@router.post("/{setup_id}/deactivate", response_model=SetupTypeResponse)
def deactivate_setup_type(
    setup_id: str,
    user_id: str = Depends(get_current_user_id_dep),
    db: Session = Depends(get_db)
):
    return setup_type_response(crud.set_setup_type_active(db, _get_owned(db, user_id, setup_id), False))


@router.post("/{setup_id}/reactivate", response_model=SetupTypeResponse)
def reactivate_setup_type(
    setup_id: str,
    user_id: str = Depends(get_current_user_id_dep),
    db: Session = Depends(get_db)
):
    return setup_type_response(crud.set_setup_type_active(db, _get_owned(db, user_id, setup_id), True))
