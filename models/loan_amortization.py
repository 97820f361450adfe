from __future__ import annotations

from typing import Optional

from sqlalchemy.engine import RowMapping

from database import connect
from db.builders import SelectBuilder
from models.base import AbstractObject
from schemas.lookup import LoanAmortizationInfo

MONTHS_PER_YEAR = 12

ID = "id"
NAME = "name"
MONTHS = "months"


class LoanAmortization(AbstractObject):
    TABLE_NAME = "loan_amortizations"

    def __init__(self, row: Optional[RowMapping] = None):
        self.id = 0
        self.name: Optional[str] = None
        self.months = 0
        if row is not None:
            self.update_from_fetch(row)

    def _add_columns(self, select: SelectBuilder) -> SelectBuilder:
        for column in (ID, NAME, MONTHS):
            select = self.add_column(select, column)
        return select

    def build_select_sql(self) -> SelectBuilder:
        return self._add_columns(SelectBuilder(self.get_table()))

    def update_from_fetch(self, row: RowMapping) -> None:
        self.id = self.value(row, ID)
        self.name = self.value(row, NAME)
        self.months = self.value(row, MONTHS)

    @property
    def total_years(self) -> float:
        """Length in years, partial for short terms: 0.5 for a 6 month amortization."""
        if self.months > 0:
            return self.months / MONTHS_PER_YEAR
        return 0.0

    def get_api_model(self) -> LoanAmortizationInfo:
        return LoanAmortizationInfo(id=self.id, name=self.name, months=self.months)

    async def get_for_id(self, amortization_id: int) -> Optional[LoanAmortization]:
        select = self.build_select_sql().where(f"{self.get_column(ID)}=:amortization_id", amortization_id=amortization_id)
        async with connect("Unable to fetch the loan amortization reference with SQL") as conn:
            result = await conn.execute(select.statement())
            row = result.mappings().first()
        if row is None:
            return None
        self.update_from_fetch(row)
        return self

    @staticmethod
    async def get_all() -> list[LoanAmortization]:
        select = LoanAmortization().build_select_sql().order_by(LoanAmortization().get_column(MONTHS))
        async with connect("Unable to fetch all the loan amortizations with SQL") as conn:
            result = await conn.execute(select.statement())
            return [LoanAmortization(row) for row in result.mappings().all()]

    @staticmethod
    async def get_all_as_model() -> list[LoanAmortizationInfo]:
        return [a.get_api_model() for a in await LoanAmortization.get_all()]

    @staticmethod
    def join(select: SelectBuilder, amortization_id_column: str) -> SelectBuilder:
        """Join the amortization table onto a caller's select through its amortization id column."""
        amortization = LoanAmortization()
        select = select.join(amortization.get_table(), f"{amortization.get_column(ID)}={amortization_id_column}")
        return amortization._add_columns(select)
