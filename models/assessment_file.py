from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncConnection

from database import connect, execute_insert
from db.builders import InsertBuilder, SelectBuilder
from models.base import AbstractObject
from schemas.assessment import AssessmentFileInfo
from utils.timestamps import to_datetime, to_millis

if TYPE_CHECKING:
    from models.assessment import Assessment

ID = "id"
ASSESSMENT = "assessment"
FILE_NAME = "file_name"
BUCKET = "bucket"
BLOB_KEY = "blob_key"
UPLOADED = "uploaded"


class AssessmentFile(AbstractObject):
    TABLE_NAME = "assessment_files"

    def __init__(
        self,
        file_name: Optional[str] = None,
        bucket: Optional[str] = None,
        blob_key: Optional[str] = None,
        row: Optional[RowMapping] = None,
    ):
        self.id = 0
        self.assessment_id = 0
        self.file_name = file_name
        self.bucket = bucket
        self.blob_key = blob_key
        self.uploaded: Optional[datetime] = None
        if row is not None:
            self.update_from_fetch(row)

    def build_select_sql(self) -> SelectBuilder:
        select = SelectBuilder(self.get_table())
        for column in (ID, ASSESSMENT, FILE_NAME, BUCKET, BLOB_KEY, UPLOADED):
            select = self.add_column(select, column)
        return select

    def update_from_fetch(self, row: RowMapping) -> None:
        self.id = self.value(row, ID)
        self.assessment_id = self.value(row, ASSESSMENT)
        self.file_name = self.value(row, FILE_NAME)
        self.bucket = self.value(row, BUCKET)
        self.blob_key = self.value(row, BLOB_KEY)
        self.uploaded = to_datetime(self.value(row, UPLOADED))

    def matches(self, other: AssessmentFile) -> bool:
        """Two files match when they carry the same name within one assessment."""
        return self.file_name is not None and self.file_name == other.file_name

    def get_api_model(self) -> AssessmentFileInfo:
        return AssessmentFileInfo(file_name=self.file_name, uploaded=to_millis(self.uploaded))

    async def add_to_database(self, assessment: Assessment) -> bool:
        if not (self.file_name and self.bucket and self.blob_key and assessment.id > 0):
            return False

        insert = (
            InsertBuilder(self.get_table())
            .set(ASSESSMENT, str(int(assessment.id)))
            .set_string(FILE_NAME, self.file_name)
            .set_string(BUCKET, self.bucket)
            .set_string(BLOB_KEY, self.blob_key)
        )
        async with connect("Unable to add the file to an existing assessment") as conn:
            file_id = await execute_insert(conn, insert)
            if file_id is None:
                return False
            select = self.build_select_sql().where(f"{self.get_column(ID)}=:file_id", file_id=file_id)
            result = await conn.execute(select.statement())
            row = result.mappings().first()
        if row is None:
            return False
        self.update_from_fetch(row)
        return True

    @staticmethod
    async def get_all_for_assessment(conn: AsyncConnection, assessment: Assessment) -> list[AssessmentFile]:
        """Fetch on the caller's connection, as part of loading the assessment itself."""
        file = AssessmentFile()
        select = (
            file.build_select_sql()
            .where(f"{file.get_column(ASSESSMENT)}=:assessment_id", assessment_id=assessment.id)
            .order_by(file.get_column(ID))
        )
        result = await conn.execute(select.statement())
        return [AssessmentFile(row=row) for row in result.mappings().all()]
