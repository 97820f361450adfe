from __future__ import annotations

from typing import Optional

from sqlalchemy.engine import RowMapping

from database import connect
from db.builders import SelectBuilder
from models.base import AbstractObject
from schemas.lookup import RatingInfo

ID = "id"
NAME = "name"
DESCRIPTION = "description"


class Rating(AbstractObject):
    TABLE_NAME = "ratings"

    def __init__(self, row: Optional[RowMapping] = None):
        self.id = 0
        self.name: Optional[str] = None
        self.description: Optional[str] = None
        if row is not None:
            self.update_from_fetch(row)

    def _add_columns(self, select: SelectBuilder) -> SelectBuilder:
        for column in (ID, NAME, DESCRIPTION):
            select = self.add_column(select, column)
        return select

    def build_select_sql(self) -> SelectBuilder:
        return self._add_columns(SelectBuilder(self.get_table()))

    def update_from_fetch(self, row: RowMapping) -> None:
        self.id = self.value(row, ID)
        self.name = self.value(row, NAME)
        self.description = self.value(row, DESCRIPTION)

    def get_api_model(self) -> RatingInfo:
        return RatingInfo(id=self.id, name=self.name, description=self.description)

    async def get_for_id(self, rating_id: int) -> Optional[Rating]:
        select = self.build_select_sql().where(f"{self.get_column(ID)}=:rating_id", rating_id=rating_id)
        async with connect("Unable to fetch the rating reference with SQL") as conn:
            result = await conn.execute(select.statement())
            row = result.mappings().first()
        if row is None:
            return None
        self.update_from_fetch(row)
        return self

    @staticmethod
    async def get_all() -> list[Rating]:
        rating = Rating()
        select = rating.build_select_sql().order_by(rating.get_column(ID))
        async with connect("Unable to fetch all the ratings with SQL") as conn:
            result = await conn.execute(select.statement())
            return [Rating(row) for row in result.mappings().all()]

    @staticmethod
    def join(select: SelectBuilder, rating_id_column: str) -> SelectBuilder:
        """
        Left join the rating table through the caller's rating id column. Rows without a
        rating are kept and carry NULL rating columns.
        """
        rating = Rating()
        select = select.left_join(rating.get_table(), f"{rating.get_column(ID)}={rating_id_column}")
        return rating._add_columns(select)
