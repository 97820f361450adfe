from typing import Optional

from pydantic import BaseModel


class LoanAmortizationInfo(BaseModel):
    id: int
    name: str
    months: int


class CountryInfo(BaseModel):
    code: str
    name: str


class RatingInfo(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
