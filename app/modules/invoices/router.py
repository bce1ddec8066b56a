from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, require_owner_or_admin
from app.modules.auth.schemas import AuthContext
from app.modules.invoices.service import InvoiceService
from app.modules.invoices.schemas import (
    InvoiceCreate, InvoiceUpdate, InvoiceDetail, InvoiceList,
    PaymentCreate, NextNumber, InvoiceStatus
)

invoices_router = APIRouter(prefix="/invoices", tags=["Invoices"])


@invoices_router.get("/", response_model=InvoiceList)
def list_invoices(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status", description="Paid, Unpaid, Partially Paid, Cancelled"),
    customer_id: Optional[UUID] = Query(None, description="Filtrar por cliente"),
    search: Optional[str] = Query(None, description="Buscar por número o cliente"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Listar facturas, más recientes primero.

    Todos los roles pueden ver las facturas.
    """
    service = InvoiceService(db)
    return service.list_invoices(
        tenant_id=auth_context.tenant_id,
        limit=limit,
        offset=offset,
        status_filter=status_filter.value if status_filter else None,
        customer_id=customer_id,
        search=search
    )


@invoices_router.get("/next-number", response_model=NextNumber)
def next_invoice_number(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """Vista previa del próximo número de factura (no lo reserva)."""
    return NextNumber(number=InvoiceService(db).next_number(auth_context.tenant_id))


@invoices_router.post("/", response_model=InvoiceDetail, status_code=status.HTTP_201_CREATED)
def create_invoice(
    invoice_data: InvoiceCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Crear una nueva factura de venta

    Se descuenta automáticamente el stock de los productos.
    """
    return InvoiceService(db).create_invoice(invoice_data, auth_context)


@invoices_router.get("/{invoice_id}", response_model=InvoiceDetail)
def get_invoice(
    invoice_id: UUID = Path(..., description="ID de la factura"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return InvoiceService(db).get_invoice(invoice_id, auth_context.tenant_id)


@invoices_router.put("/{invoice_id}", response_model=InvoiceDetail)
def update_invoice(
    invoice_data: InvoiceUpdate,
    invoice_id: UUID = Path(..., description="ID de la factura"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_owner_or_admin())
):
    """
    Editar una factura (solo owner/admin).

    No se pueden editar facturas canceladas.
    """
    return InvoiceService(db).update_invoice(invoice_id, invoice_data, auth_context)


@invoices_router.post("/{invoice_id}/cancel", response_model=InvoiceDetail)
def cancel_invoice(
    invoice_id: UUID = Path(..., description="ID de la factura"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_owner_or_admin())
):
    """Cancelar una factura y reponer el stock vendido."""
    return InvoiceService(db).cancel_invoice(invoice_id, auth_context)


@invoices_router.post("/{invoice_id}/payments", response_model=InvoiceDetail, status_code=status.HTTP_201_CREATED)
def add_payment(
    payment_data: PaymentCreate,
    invoice_id: UUID = Path(..., description="ID de la factura"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return InvoiceService(db).add_payment(invoice_id, payment_data, auth_context)
