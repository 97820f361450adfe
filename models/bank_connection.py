from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import structlog
from sqlalchemy.engine import RowMapping

from database import connect, execute_insert
from db.builders import DeleteBuilder, InsertBuilder, SelectBuilder
from models.base import AbstractObject
from schemas.user import BankConnectionInfo
from utils.timestamps import to_datetime
from utils.uuids import from_bytes, is_uuid, to_bytes

if TYPE_CHECKING:
    from models.user import User

logger = structlog.get_logger()

ID = "id"
REFERENCE = "reference"
USER = "user_id"
INSTITUTION = "institution"
TRANSIT = "transit"
ACCOUNT = "account"
CREATED = "created"


class BankConnection(AbstractObject):
    TABLE_NAME = "bank_connections"

    def __init__(
        self,
        institution: Optional[str] = None,
        transit: Optional[str] = None,
        account: Optional[str] = None,
        row: Optional[RowMapping] = None,
    ):
        self.id = 0
        self.reference: Optional[uuid.UUID] = None
        self.user_id = 0
        self.institution = institution
        self.transit = transit
        self.account = account
        self.created: Optional[datetime] = None
        if row is not None:
            self.update_from_fetch(row)

    def build_select_sql(self, user: User) -> SelectBuilder:
        select = SelectBuilder(self.get_table())
        for column in (ID, REFERENCE, USER, INSTITUTION, TRANSIT, ACCOUNT, CREATED):
            select = self.add_column(select, column)
        return select.where(f"{self.get_column(USER)}=:user_id", user_id=user.id)

    def update_from_fetch(self, row: RowMapping) -> None:
        self.id = self.value(row, ID)
        self.reference = from_bytes(self.value(row, REFERENCE))
        self.user_id = self.value(row, USER)
        self.institution = self.value(row, INSTITUTION)
        self.transit = self.value(row, TRANSIT)
        self.account = self.value(row, ACCOUNT)
        self.created = to_datetime(self.value(row, CREATED))

    def get_api_model(self) -> BankConnectionInfo:
        return BankConnectionInfo(
            reference=str(self.reference),
            institution=self.institution,
            transit=self.transit,
            account=self.account,
            created=self.created,
        )

    async def add_to_database(self, user: User) -> bool:
        if not (self.institution and self.transit and self.account and user.id > 0):
            return False
        self.reference = uuid.uuid4()
        insert = (
            InsertBuilder(self.get_table())
            .set_string(REFERENCE, self.reference.bytes)
            .set(USER, str(int(user.id)))
            .set_string(INSTITUTION, self.institution)
            .set_string(TRANSIT, self.transit)
            .set_string(ACCOUNT, self.account)
        )
        async with connect("Unable to add the bank connection for an existing user") as conn:
            connection_id = await execute_insert(conn, insert)
            if connection_id is None:
                return False
            select = self.build_select_sql(user).where(f"{self.get_column(ID)}=:connection_id", connection_id=connection_id)
            result = await conn.execute(select.statement())
            row = result.mappings().first()
        if row is None:
            return False
        self.update_from_fetch(row)
        logger.info("bank_connection_added", user=user.id, bank_connection=str(self.reference))
        return True

    async def get_for_reference(self, user: User, reference: str) -> Optional[BankConnection]:
        if not is_uuid(reference):
            return None
        select = self.build_select_sql(user).where(
            f"{self.get_column(REFERENCE)}=:connection_reference", connection_reference=to_bytes(reference)
        )
        async with connect("Unable to fetch the bank connection reference with SQL") as conn:
            result = await conn.execute(select.statement())
            row = result.mappings().first()
        if row is None:
            return None
        self.update_from_fetch(row)
        return self

    async def remove_from_database(self) -> bool:
        """Delete this connection. False when it was never stored or is already gone."""
        if not self.id:
            return False
        delete = (
            DeleteBuilder(self.get_table())
            .where(f"{self.get_column(ID)}=:connection_id", connection_id=self.id)
            .where(f"{self.get_column(USER)}=:user_id", user_id=self.user_id)
        )
        async with connect("Unable to remove the bank connection with SQL") as conn:
            result = await conn.execute(delete.statement())
        if result.rowcount != 1:
            return False
        logger.info("bank_connection_removed", user=self.user_id, bank_connection=str(self.reference))
        return True

    @staticmethod
    async def get_all_for_user(user: User) -> list[BankConnection]:
        connection = BankConnection()
        select = connection.build_select_sql(user).order_by(connection.get_column(ID))
        async with connect("Unable to fetch the bank connections for the user with SQL") as conn:
            result = await conn.execute(select.statement())
            return [BankConnection(row=row) for row in result.mappings().all()]
