"""
Router del módulo de IA

Las consultas de negocio exponen costos y ventas: solo owner/admin.
La sugerencia de líneas de factura está disponible para todos los roles.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, require_owner_or_admin
from app.modules.auth.schemas import AuthContext
from app.modules.ai.service import AIService
from app.modules.ai.schemas import (
    AnalystRequest, AssistantRequest, AnswerOut,
    ForecastRequest, ForecastOut, SuggestRequest, SuggestionOut
)

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post("/business-analyst", response_model=AnswerOut)
def business_analyst(
    request: AnalystRequest,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_owner_or_admin())
):
    return AIService(db).business_analyst(auth_context.tenant_id, request.question, request.locale.value)


@router.post("/business-assistant", response_model=AnswerOut)
def business_assistant(
    request: AssistantRequest,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_owner_or_admin())
):
    return AIService(db).business_assistant(auth_context.tenant_id, request.question, request.locale.value)


@router.post("/forecast-sales", response_model=ForecastOut)
def forecast_sales(
    request: ForecastRequest,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(require_owner_or_admin())
):
    """Pronóstico de 30 días a partir de ventas diarias (mínimo 7 puntos)."""
    return AIService(db).forecast_sales(auth_context.tenant_id, request.sales_data)


@router.post("/suggest-line-item", response_model=SuggestionOut)
def suggest_line_item(
    request: SuggestRequest,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return AIService(db).suggest_line_item(request.partial_description)
