"""
Servicio de IA

Cada flujo es una sola llamada al modelo con un prompt fijo y salida JSON
validada con Pydantic. No hay reintentos.
"""
import json
import logging
from typing import List, Optional, Type, TypeVar
from uuid import UUID

from fastapi import HTTPException, status
from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.database.database import get_tenant_query
from app.modules.ai import prompts
from app.modules.ai.schemas import AnswerOut, ForecastOut, SalesPoint, SuggestionOut
from app.modules.customers.models import Customer
from app.modules.customers.schemas import CustomerOut
from app.modules.expenses.models import Expense
from app.modules.expenses.schemas import ExpenseOut
from app.modules.inventory.models import InventoryItem
from app.modules.inventory.schemas import InventoryItemOut
from app.modules.invoices.models import Invoice
from app.modules.invoices.schemas import InvoiceDetail
from app.modules.reports.services.sales import SalesReportService
from app.modules.returns.models import ReturnItem
from app.modules.returns.schemas import ReturnOut
from app.modules.suppliers.models import Supplier
from app.modules.suppliers.schemas import SupplierOut

logger = logging.getLogger(__name__)

Output = TypeVar("Output", bound=BaseModel)

MIN_FORECAST_POINTS = 7
NOT_ENOUGH_DATA_MESSAGE = (
    "There is not enough historical data to generate a meaningful forecast. "
    "Please accumulate at least 7 days of sales."
)
RECENT_LIMIT = 100

_client: Optional[OpenAI] = None


class AIFlowError(Exception):
    """El modelo no respondió o su salida no cumple el esquema."""


def get_openai_client() -> OpenAI:
    global _client
    if _client is None:
        _client = OpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.AI_TIMEOUT_SECONDS)
    return _client


def _dump(schema: Type[BaseModel], rows) -> list:
    return [schema.model_validate(row).model_dump(mode="json") for row in rows]


class AIService:
    def __init__(self, db: Session, client: Optional[OpenAI] = None):
        self.db = db
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = get_openai_client()
        return self._client

    def _complete(self, system_prompt: str, user_content: str, output_model: Type[Output]) -> Output:
        try:
            response = self.client.chat.completions.create(
                model=settings.OPENAI_MODEL,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content}
                ],
                temperature=0.2,
                response_format={"type": "json_object"}
            )
            content = response.choices[0].message.content
            return output_model.model_validate_json(content or "")
        except (OpenAIError, ValidationError) as e:
            logger.error(f"AI {output_model.__name__} generation failed: {e}")
            raise AIFlowError(str(e)) from e

    def _complete_or_502(self, system_prompt: str, user_content: str, output_model: Type[Output]) -> Output:
        try:
            return self._complete(system_prompt, user_content, output_model)
        except AIFlowError:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="El servicio de IA no está disponible en este momento"
            )

    # ===== FLUJOS =====

    def business_analyst(self, tenant_id: UUID, question: str, locale: str) -> AnswerOut:
        """Responder con todos los datos de la organización como contexto."""
        data = {
            "customers": _dump(CustomerOut, self._tenant_rows(Customer, tenant_id)),
            "inventory": _dump(InventoryItemOut, self._tenant_rows(InventoryItem, tenant_id)),
            "invoices": _dump(InvoiceDetail, self._tenant_rows(Invoice, tenant_id)),
            "expenses": _dump(ExpenseOut, self._tenant_rows(Expense, tenant_id)),
            "returns": _dump(ReturnOut, self._tenant_rows(ReturnItem, tenant_id)),
            "suppliers": _dump(SupplierOut, self._tenant_rows(Supplier, tenant_id)),
        }
        user_content = f"User's question: {question}\n\nDATA:\n{json.dumps(data, ensure_ascii=False)}"
        system_prompt = prompts.BUSINESS_ANALYST_PROMPT.format(language=prompts.LANGUAGES[locale])
        return self._complete_or_502(system_prompt, user_content, AnswerOut)

    def business_assistant(self, tenant_id: UUID, question: str, locale: str) -> AnswerOut:
        """Responder con facturas y gastos recientes y el inventario actual."""
        invoices = self._tenant_rows(Invoice, tenant_id, limit=RECENT_LIMIT)
        expenses = self._tenant_rows(Expense, tenant_id, limit=RECENT_LIMIT)
        inventory = self._tenant_rows(InventoryItem, tenant_id)

        lines = [f"User question:\n{question}", "", "Invoices (recent):"]
        for invoice in invoices:
            products = "; ".join(f"{line.description} x{line.quantity}" for line in invoice.line_items)
            lines.append(
                f"- {invoice.created_at:%Y-%m-%d} | total: {invoice.total:.2f} | status: {invoice.status} | {products}"
            )
        lines += ["", "Expenses (recent):"]
        for expense in expenses:
            lines.append(f"- {expense.date:%Y-%m-%d} | {expense.category} | amount: {expense.amount:.2f}")
        lines += ["", "Inventory snapshot:"]
        for item in inventory:
            lines.append(
                f"- {item.name} | qty: {item.quantity} | price: {item.price:.2f} | cost: {item.cost_price:.2f}"
            )

        system_prompt = prompts.BUSINESS_ASSISTANT_PROMPT.format(language=prompts.LANGUAGES[locale])
        return self._complete_or_502(system_prompt, "\n".join(lines), AnswerOut)

    def forecast_sales(self, tenant_id: UUID, sales_data: Optional[List[SalesPoint]] = None) -> ForecastOut:
        """
        Pronóstico de 30 días.

        Con menos de 7 puntos se devuelve un mensaje fijo sin llamar al modelo.
        """
        if sales_data is None:
            sales_data = [
                SalesPoint(date=row["date"].isoformat(), total=float(row["total"]))
                for row in SalesReportService(self.db, tenant_id).daily_revenue()
            ]

        if len(sales_data) < MIN_FORECAST_POINTS:
            return ForecastOut(forecast=NOT_ENOUGH_DATA_MESSAGE)

        history = "\n".join(f"- Date: {point.date}, Sales: {point.total:.2f}" for point in sales_data)
        return self._complete_or_502(prompts.FORECAST_PROMPT, f"Historical Sales Data:\n{history}", ForecastOut)

    def suggest_line_item(self, partial_description: str) -> SuggestionOut:
        """Sugerencia de descripción; cadena vacía ante cualquier fallo."""
        try:
            return self._complete(
                prompts.SUGGEST_LINE_ITEM_PROMPT,
                f"Partial Description: {partial_description}",
                SuggestionOut
            )
        except AIFlowError:
            return SuggestionOut(suggestion="")

    def _tenant_rows(self, model, tenant_id: UUID, limit: Optional[int] = None):
        query = get_tenant_query(self.db, model, tenant_id).order_by(model.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()
