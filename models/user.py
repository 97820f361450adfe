"""
Users: borrowers and investors.

Every user has one row in the shared users table and one row in its subtype table
(borrowers or investors). The subtype row repeats the user id and the type discriminant,
and the two are always joined on (id, type). The shared record lives on User; a subtype
is just a USER_TYPE tag, a table name and its extra DETAIL_COLUMNS, so loading any user
is one joined query whichever subtype it is.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from enum import IntEnum
from typing import ClassVar, Optional

import bcrypt
import structlog
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncConnection

from database import connect, execute_insert
from db.builders import InsertBuilder, SelectBuilder, UpdateBuilder
from models.bank_connection import BankConnection
from models.base import AbstractObject
from models.country import Country
from schemas.user import UserEditable, UserViewable
from utils.timestamps import to_datetime
from utils.uuids import from_bytes, is_uuid, to_bytes

logger = structlog.get_logger()

# Shared (parent) columns
ID = "id"
TYPE = "type"
PASSWORD = "password"
PASSWORD_DATE = "password_date"
NAME = "name"
ENABLED = "enabled"
FLAGS = "flags"
ADDRESS1 = "address1"
ADDRESS2 = "address2"
ADDRESS3 = "address3"
CITY = "city"
PROVINCE = "province"
POST_CODE = "post_code"
COUNTRY = "country"
CREATED = "created"

PARENT_COLUMNS = (
    ID, PASSWORD, PASSWORD_DATE, NAME, ENABLED, FLAGS, ADDRESS1, ADDRESS2, ADDRESS3,
    CITY, PROVINCE, POST_CODE, COUNTRY, CREATED,
)

# Columns every subtype table carries
REFERENCE = "reference"
EMAIL = "email"
PHONE = "phone"


class UserType(IntEnum):
    BORROWER = 1
    INVESTOR = 2


USER_TYPES: dict[UserType, type["User"]] = {}


class User(AbstractObject):
    PARENT_TABLE_NAME = "users"
    USER_TYPE: ClassVar[UserType]
    DETAIL_COLUMNS: ClassVar[tuple[str, ...]] = ()
    VIEWABLE: ClassVar[type[UserViewable]] = UserViewable

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if "USER_TYPE" in cls.__dict__:
            USER_TYPES[cls.USER_TYPE] = cls

    def __init__(
        self,
        name: Optional[str] = None,
        password_hash: Optional[str] = None,
        country: Optional[Country] = None,
        email: Optional[str] = None,
    ):
        self.id = 0
        self.password = password_hash
        self.password_date: Optional[datetime] = None
        self.name = name
        self.enabled = name is not None
        self.flags = 0
        self.address1: Optional[str] = "" if name is not None else None
        self.address2: Optional[str] = None
        self.address3: Optional[str] = None
        self.city: Optional[str] = "" if name is not None else None
        self.province: Optional[str] = None
        self.post_code: Optional[str] = None
        self.country_id = country.id if country is not None else 0
        self.created: Optional[datetime] = None

        self.reference: Optional[uuid.UUID] = None
        self.email = email
        self.phone: Optional[str] = None
        for column in self.DETAIL_COLUMNS:
            setattr(self, column, None)

        self.bank_connections: Optional[list[BankConnection]] = None

    # Select

    def build_select_parent_sql(
        self,
        select: SelectBuilder,
        child_id_column: str,
        child_type_column: str,
        id_column: Optional[str] = None,
    ) -> SelectBuilder:
        """Join the shared users table onto a subtype select and project its columns."""
        on = (
            f"{self.get_column_parent(ID)}={child_id_column} AND "
            f"{self.get_column_parent(TYPE)}={child_type_column}"
        )
        if id_column is not None:
            on += f" AND {self.get_column_parent(ID)}={id_column}"
        select = select.join(self.get_table_parent(), on)
        for column in PARENT_COLUMNS:
            select = self.add_column_parent(select, column)
        return select

    def build_select_sql(self) -> SelectBuilder:
        select = SelectBuilder(self.get_table())
        for column in (REFERENCE, EMAIL, PHONE) + self.DETAIL_COLUMNS:
            select = self.add_column(select, column)
        return self.build_select_parent_sql(select, self.get_column(ID), self.get_column(TYPE))

    def update_from_fetch(self, row: RowMapping) -> None:
        self.id = self.value_parent(row, ID)
        self.password = self.value_parent(row, PASSWORD)
        self.password_date = to_datetime(self.value_parent(row, PASSWORD_DATE))
        self.name = self.value_parent(row, NAME)
        self.enabled = bool(self.value_parent(row, ENABLED))
        self.flags = self.value_parent(row, FLAGS) or 0
        self.address1 = self.value_parent(row, ADDRESS1)
        self.address2 = self.value_parent(row, ADDRESS2)
        self.address3 = self.value_parent(row, ADDRESS3)
        self.city = self.value_parent(row, CITY)
        self.province = self.value_parent(row, PROVINCE)
        self.post_code = self.value_parent(row, POST_CODE)
        self.country_id = self.value_parent(row, COUNTRY)
        self.created = to_datetime(self.value_parent(row, CREATED))

        self.reference = from_bytes(self.value(row, REFERENCE))
        self.email = self.value(row, EMAIL)
        self.phone = self.value(row, PHONE)
        for column in self.DETAIL_COLUMNS:
            setattr(self, column, self.value(row, column))

    async def _fetch_one(self, select: SelectBuilder) -> Optional[User]:
        async with connect("Unable to fetch the user reference with SQL") as conn:
            result = await conn.execute(select.statement())
            row = result.mappings().first()
        if row is None:
            return None
        self.update_from_fetch(row)
        return self

    async def get_for_reference(self, reference: str) -> Optional[User]:
        if not is_uuid(reference):
            return None
        return await self._fetch_one(
            self.build_select_sql().where(f"{self.get_column(REFERENCE)}=:user_reference", user_reference=to_bytes(reference))
        )

    async def get_for_email(self, email: str) -> Optional[User]:
        return await self._fetch_one(
            self.build_select_sql().where(f"{self.get_column(EMAIL)}=:email", email=email.lower())
        )

    # Insert

    async def insert_parent(self, conn: AsyncConnection) -> Optional[int]:
        """Insert the shared users row. Returns the new user id, None when incomplete."""
        if not (self.password and self.name and self.address1 is not None and self.city is not None and self.country_id > 0):
            return None
        insert = (
            InsertBuilder(self.get_table_parent())
            .set(TYPE, str(int(self.USER_TYPE)))
            .set_string(PASSWORD, self.password)
            .set_string(NAME, self.name)
            .set_string(ENABLED, self.enabled)
            .set_string(ADDRESS1, self.address1)
            .set_string(CITY, self.city)
            .set(COUNTRY, str(int(self.country_id)))
        )
        return await execute_insert(conn, insert)

    async def add_to_database(self) -> bool:
        """Insert the shared and subtype rows on one connection, then load the user back."""
        if not self.email:
            return False
        self.email = self.email.lower()
        self.reference = uuid.uuid4()

        async with connect("Unable to add the new user with SQL") as conn:
            user_id = await self.insert_parent(conn)
            if user_id is None:
                return False
            insert = (
                InsertBuilder(self.get_table())
                .set(ID, str(int(user_id)))
                .set(TYPE, str(int(self.USER_TYPE)))
                .set_string(REFERENCE, self.reference.bytes)
                .set_string(EMAIL, self.email)
                .set_string(PHONE, self.phone)
            )
            for column in self.DETAIL_COLUMNS:
                insert = insert.set_string(column, getattr(self, column))
            await conn.execute(insert.statement())

            select = self.build_select_sql().where(f"{self.get_column(ID)}=:user_id", user_id=user_id)
            result = await conn.execute(select.statement())
            row = result.mappings().first()
        if row is None:
            return False

        self.update_from_fetch(row)
        logger.info("user_registered", user_type=self.USER_TYPE.name, user=str(self.reference))
        return True

    # Update

    async def update_database(self, conn: AsyncConnection) -> bool:
        """Write editable fields of both rows. Requires a loaded user."""
        if not (self.id and self.name and self.address1 is not None and self.city is not None):
            return False
        update = (
            UpdateBuilder(self.get_table_parent())
            .set(f"{NAME}=:name", name=self.name)
            .set(f"{ADDRESS1}=:address1", address1=self.address1)
            .set(f"{ADDRESS2}=:address2", address2=self.address2)
            .set(f"{ADDRESS3}=:address3", address3=self.address3)
            .set(f"{CITY}=:city", city=self.city)
            .set(f"{PROVINCE}=:province", province=self.province)
            .set(f"{POST_CODE}=:post_code", post_code=self.post_code)
            .where(f"{self.get_column_parent(ID)}=:user_id", user_id=self.id)
            .where(f"{self.get_column_parent(TYPE)}=:user_type", user_type=int(self.USER_TYPE))
        )
        result = await conn.execute(update.statement())
        if result.rowcount != 1:
            return False

        await conn.execute(self.build_update_child_sql().statement())
        return True

    def build_update_child_sql(self) -> UpdateBuilder:
        """Update of the subtype row, keyed on (id, type) like every parent/child access."""
        update = UpdateBuilder(self.get_table()).set(f"{PHONE}=:phone", phone=self.phone)
        for column in self.DETAIL_COLUMNS:
            update = update.set(f"{column}=:{column}", **{column: getattr(self, column)})
        return (
            update.where(f"{self.get_column(ID)}=:user_id", user_id=self.id)
            .where(f"{self.get_column(TYPE)}=:user_type", user_type=int(self.USER_TYPE))
        )

    async def save(self) -> bool:
        async with connect("Unable to update the user with SQL") as conn:
            return await self.update_database(conn)

    def update_from_editable(self, editable: UserEditable) -> None:
        self.name = editable.name
        self.address1 = editable.address1
        self.address2 = editable.address2
        self.address3 = editable.address3
        self.city = editable.city
        self.province = editable.province
        self.post_code = editable.post_code
        self.phone = editable.phone
        for column in self.DETAIL_COLUMNS:
            if hasattr(editable, column):
                setattr(self, column, getattr(editable, column))

    # Credentials

    def set_password(self, raw_password: str) -> None:
        self.password = bcrypt.hashpw(raw_password.encode(), bcrypt.gensalt()).decode()

    def check_password(self, raw_password: str) -> bool:
        if not self.password:
            return False
        return bcrypt.checkpw(raw_password.encode(), self.password.encode())

    # Connected info and views

    async def fetch_connected_info(self) -> None:
        """Load connected records (bank connections) into this user."""
        self.bank_connections = await BankConnection.get_all_for_user(self)

    async def get_viewable(self, with_connected_info: bool = False) -> UserViewable:
        country = await Country().get_country(self.country_id)
        data = {
            "reference": str(self.reference),
            "name": self.name,
            "email": self.email,
            "address1": self.address1,
            "address2": self.address2,
            "address3": self.address3,
            "city": self.city,
            "province": self.province,
            "post_code": self.post_code,
            "country": country.code if country is not None else None,
            "phone": self.phone,
        }
        for column in self.DETAIL_COLUMNS:
            data[column] = getattr(self, column)
        if with_connected_info:
            if self.bank_connections is None:
                await self.fetch_connected_info()
            data["bank_connections"] = [b.get_api_model() for b in self.bank_connections]
        return self.VIEWABLE(**data)

    def get_user_id(self) -> int:
        return self.id

    def matches(self, user_type: UserType, reference: str) -> bool:
        if self.USER_TYPE != user_type or self.reference is None or not is_uuid(reference):
            return False
        return uuid.UUID(reference) == self.reference


async def load_user(user_type: UserType, reference: str) -> Optional[User]:
    """Fetch a user of the given type by reference. None when unknown."""
    user_class = USER_TYPES.get(user_type)
    if user_class is None:
        raise ValueError(f"Unknown user type: {user_type!r}")
    return await user_class().get_for_reference(reference)
