from __future__ import annotations

from typing import Optional

from sqlalchemy.engine import RowMapping

from database import connect
from db.builders import SelectBuilder
from models.base import AbstractObject
from schemas.lookup import CountryInfo

ID = "id"
CODE = "code"
NAME = "name"


class Country(AbstractObject):
    TABLE_NAME = "countries"

    def __init__(self, row: Optional[RowMapping] = None):
        self.id = 0
        self.code: Optional[str] = None
        self.name: Optional[str] = None
        if row is not None:
            self.update_from_fetch(row)

    def build_select_sql(self) -> SelectBuilder:
        select = SelectBuilder(self.get_table())
        for column in (ID, CODE, NAME):
            select = self.add_column(select, column)
        return select

    def update_from_fetch(self, row: RowMapping) -> None:
        self.id = self.value(row, ID)
        self.code = self.value(row, CODE)
        self.name = self.value(row, NAME)

    def get_api_model(self) -> CountryInfo:
        return CountryInfo(code=self.code, name=self.name)

    async def _fetch_one(self, select: SelectBuilder) -> Optional[Country]:
        async with connect("Unable to fetch the country reference with SQL") as conn:
            result = await conn.execute(select.statement())
            row = result.mappings().first()
        if row is None:
            return None
        self.update_from_fetch(row)
        return self

    async def get_country(self, country_id: int) -> Optional[Country]:
        return await self._fetch_one(
            self.build_select_sql().where(f"{self.get_column(ID)}=:country_id", country_id=country_id)
        )

    async def get_for_code(self, code: str) -> Optional[Country]:
        return await self._fetch_one(
            self.build_select_sql().where(f"{self.get_column(CODE)}=:code", code=code.upper())
        )

    @staticmethod
    async def get_all() -> list[Country]:
        country = Country()
        select = country.build_select_sql().order_by(country.get_column(NAME))
        async with connect("Unable to fetch all the countries with SQL") as conn:
            result = await conn.execute(select.statement())
            return [Country(row) for row in result.mappings().all()]
