from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum


class Locale(str, Enum):
    EN = "en"
    SI = "si"


class AnalystRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=2000)
    locale: Locale = Locale.EN


class AssistantRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=2000)
    locale: Locale = Locale.SI


class AnswerOut(BaseModel):
    answer: str


class SalesPoint(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD")
    total: float


class ForecastRequest(BaseModel):
    sales_data: Optional[List[SalesPoint]] = Field(
        None, description="Ventas diarias; si se omite se usan los pagos registrados"
    )


class ForecastOut(BaseModel):
    forecast: str


class SuggestRequest(BaseModel):
    partial_description: str = Field(..., min_length=1, max_length=200)


class SuggestionOut(BaseModel):
    suggestion: str
