"""
Router para el módulo de Devoluciones

Todos los roles pueden registrar y consultar devoluciones; solo owner/admin
cambian su estado.
"""
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES
from app.modules.returns.service import ReturnService
from app.modules.returns.schemas import (
    ReturnCreate, ReturnUpdate, ReturnOut, ReturnList, ReturnStatus
)

router = APIRouter(
    prefix="/returns",
    tags=["Returns"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=ReturnList)
async def list_returns(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[ReturnStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ReturnService(db).list_returns(
        auth_context.tenant_id, limit, offset,
        status_filter.value if status_filter else None
    )


@router.post("/", response_model=ReturnOut, status_code=status.HTTP_201_CREATED)
async def create_return(
    return_data: ReturnCreate,
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """
    Registrar devolución

    - **reason**: mínimo 5 caracteres
    - **customer_name**: requerido para Customer Return
    """
    return ReturnService(db).create_return(return_data, auth_context)


@router.get("/{return_id}", response_model=ReturnOut)
async def get_return(
    return_id: UUID = Path(..., description="ID de la devolución"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ReturnService(db).get_return(return_id, auth_context.tenant_id)


@router.patch("/{return_id}", response_model=ReturnOut)
async def update_return(
    return_data: ReturnUpdate,
    return_id: UUID = Path(..., description="ID de la devolución"),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ReturnService(db).update_return(return_id, return_data, auth_context)
