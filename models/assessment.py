"""
Borrower loan assessments.

Lifecycle: STARTED --submit--> PENDING --decision--> APPROVED | REJECTED.
Files can only be attached while STARTED, and a rating is carried only once APPROVED.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import TYPE_CHECKING, Optional

import structlog
from sqlalchemy.engine import RowMapping

from config import settings
from database import connect, execute_insert
from db.builders import InsertBuilder, SelectBuilder, UpdateBuilder
from db.errors import StatementBuildError
from models.assessment_file import AssessmentFile
from models.base import AbstractObject
from models.rating import Rating
from schemas.assessment import AssessmentInfo, AssessmentSummary
from services.blobstore import BlobstoreService, get_blobstore, upload_bucket
from utils.timestamps import to_datetime, to_millis
from utils.uuids import from_bytes, is_uuid, to_bytes

if TYPE_CHECKING:
    from models.borrower import Borrower

logger = structlog.get_logger()

ID = "id"
REFERENCE = "reference"
BORROWER = "borrower"
REGISTERED = "registered"
UPDATED = "updated"
STATUS = "status"
RATING = "rating"

MIN_SUBMIT_FILES = 2
UPLOAD_CALLBACK = settings.base_path + "/uploads/assessments/"


class Status(IntEnum):
    STARTED = 1
    PENDING = 2
    APPROVED = 3
    REJECTED = 4


@dataclass(frozen=True)
class Decision:
    """Outcome of adjudicating a pending assessment."""

    status: Status
    rating_id: Optional[int] = None

    def is_valid(self) -> bool:
        if self.status == Status.APPROVED:
            return self.rating_id is not None
        return self.status == Status.REJECTED and self.rating_id is None


class Assessment(AbstractObject):
    TABLE_NAME = "assessments"

    def __init__(self, row: Optional[RowMapping] = None):
        self.id = 0
        self.reference: Optional[uuid.UUID] = None
        self.borrower_id = 0
        self.registered: Optional[datetime] = None
        self.updated: Optional[datetime] = None
        self.status: Optional[Status] = None
        self.rating_id = 0
        self.rating: Optional[Rating] = None
        self.files: list[AssessmentFile] = []
        if row is not None:
            self.update_from_fetch(row)

    def _build_select_all_sql(self) -> SelectBuilder:
        select = SelectBuilder(self.get_table())
        for column in (ID, REFERENCE, BORROWER, REGISTERED, UPDATED, STATUS, RATING):
            select = self.add_column(select, column)
        return select

    def build_select_sql(self, borrower: Optional[Borrower] = None, reference: Optional[str] = None) -> SelectBuilder:
        """Select assessments of a borrower, by reference, or both. One of the two is required."""
        if borrower is None and reference is None:
            raise StatementBuildError("Both the borrower and the reference are null on select assessment. Not permitted")

        select = self._build_select_all_sql()
        if borrower is not None:
            select = select.where(f"{self.get_column(BORROWER)}=:borrower_id", borrower_id=borrower.id)
        if reference is not None:
            select = select.where(f"{self.get_column(REFERENCE)}=:assessment_reference", assessment_reference=to_bytes(reference))
        return Rating.join(select, self.get_column(RATING))

    def update_from_fetch(self, row: RowMapping) -> None:
        self.id = self.value(row, ID)
        self.reference = from_bytes(self.value(row, REFERENCE))
        self.borrower_id = self.value(row, BORROWER)
        self.registered = to_datetime(self.value(row, REGISTERED))
        self.updated = to_datetime(self.value(row, UPDATED))
        self.status = Status(self.value(row, STATUS))
        self.rating_id = self.value(row, RATING) or 0

        if self.status == Status.APPROVED and row[Rating().get_label(ID)] is not None:
            self.rating = Rating(row)
        else:
            self.rating = None

    async def _fetch_with_files(self, select: SelectBuilder, error_message: str) -> Optional[Assessment]:
        async with connect(error_message) as conn:
            result = await conn.execute(select.statement())
            row = result.mappings().first()
            if row is None:
                return None
            self.update_from_fetch(row)
            self.files = await AssessmentFile.get_all_for_assessment(conn, self)
        return self

    async def add_to_database(self, borrower: Borrower) -> bool:
        """Create a new STARTED assessment owned by the borrower and load it back."""
        self.reference = uuid.uuid4()
        insert = (
            InsertBuilder(self.get_table())
            .set_string(REFERENCE, self.reference.bytes)
            .set(BORROWER, str(int(borrower.id)))
            .set(STATUS, str(int(Status.STARTED)))
        )

        async with connect("Unable to add the assessment for an existing borrower") as conn:
            assessment_id = await execute_insert(conn, insert)
            if assessment_id is None:
                return False
            select = self.build_select_sql(borrower).where(f"{self.get_column(ID)}=:assessment_id", assessment_id=assessment_id)
            result = await conn.execute(select.statement())
            row = result.mappings().first()
        if row is None:
            return False

        self.update_from_fetch(row)
        self.files = []
        logger.info("assessment_created", assessment=str(self.reference), borrower=borrower.id)
        return True

    async def get_assessment(self, borrower: Borrower, reference: str) -> Optional[Assessment]:
        if not is_uuid(reference):
            return None
        return await self._fetch_with_files(
            self.build_select_sql(borrower, reference),
            "Unable to fetch the assessment reference with SQL",
        )

    async def get_for_reference(self, reference: str) -> Optional[Assessment]:
        """Fetch by reference alone, for callers that hold no borrower (upload callbacks)."""
        if not is_uuid(reference):
            return None
        return await self._fetch_with_files(
            self.build_select_sql(reference=reference),
            "Unable to fetch the assessment reference with SQL",
        )

    async def get_last_approved(self, borrower: Borrower) -> Optional[Assessment]:
        select = (
            self.build_select_sql(borrower)
            .where(f"{self.get_column(STATUS)}=:status", status=int(Status.APPROVED))
            .order_by(self.get_column(ID), ascending=False)
            .limit(1)
        )
        return await self._fetch_with_files(select, "Unable to fetch the last approved assessment reference with SQL")

    def can_upload(self) -> bool:
        return self.status == Status.STARTED

    def can_be_submitted(self) -> bool:
        return self.can_upload() and len(self.files) >= MIN_SUBMIT_FILES

    def can_be_decided(self) -> bool:
        return self.status == Status.PENDING

    def get_file_that_matches(self, file: AssessmentFile) -> Optional[AssessmentFile]:
        for existing in self.files:
            if existing.matches(file):
                return existing
        return None

    async def add_file(self, file: AssessmentFile) -> bool:
        """Attach a stored upload. Refused once the assessment has left STARTED or on a duplicate name."""
        if not self.can_upload() or self.get_file_that_matches(file) is not None:
            return False
        if not await file.add_to_database(self):
            return False
        self.files.append(file)
        logger.info("assessment_file_added", assessment=str(self.reference), file_name=file.file_name)
        return True

    async def submit(self) -> bool:
        """Move to PENDING for review. No-op returning False when not submittable."""
        if not self.can_be_submitted():
            return False

        update = (
            UpdateBuilder(self.get_table())
            .set(f"{STATUS}=:status", status=int(Status.PENDING))
            .set(f"{UPDATED}=CURRENT_TIMESTAMP")
            .where(f"{self.get_column(ID)}=:assessment_id", assessment_id=self.id)
        )
        if not await self._update_and_reload(update, "Unable to update the assessment to submit with SQL"):
            return False
        logger.info("assessment_submitted", assessment=str(self.reference), files=len(self.files))
        return True

    async def _update_and_reload(self, update: UpdateBuilder, error_message: str) -> bool:
        """Run the UPDATE and reselect on the same connection so server-side values are picked up."""
        select = self.build_select_sql(reference=str(self.reference)).where(
            f"{self.get_column(ID)}=:assessment_id", assessment_id=self.id
        )
        async with connect(error_message) as conn:
            result = await conn.execute(update.statement())
            if result.rowcount != 1:
                return False
            result = await conn.execute(select.statement())
            row = result.mappings().first()
        if row is None:
            return False
        self.update_from_fetch(row)
        return True

    async def apply_decision(self, decision: Decision) -> bool:
        """Record the outcome of a review. Only PENDING assessments accept one, and an approval needs a known rating."""
        if not self.can_be_decided() or not decision.is_valid():
            return False
        if decision.rating_id is not None and await Rating().get_for_id(decision.rating_id) is None:
            logger.warning("assessment_decision_unknown_rating", assessment=str(self.reference), rating=decision.rating_id)
            return False

        rating_expr = f"{RATING}=:rating_id" if decision.rating_id is not None else f"{RATING}=NULL"
        params = {"rating_id": decision.rating_id} if decision.rating_id is not None else {}
        update = (
            UpdateBuilder(self.get_table())
            .set(f"{STATUS}=:status", status=int(decision.status))
            .set(rating_expr, **params)
            .set(f"{UPDATED}=CURRENT_TIMESTAMP")
            .where(f"{self.get_column(ID)}=:assessment_id", assessment_id=self.id)
        )
        if not await self._update_and_reload(update, "Unable to update the assessment decision with SQL"):
            return False
        logger.info("assessment_decided", assessment=str(self.reference), status=self.status.name, rating=self.rating_id)
        return True

    def get_api_info(self, include_reference: bool, blobstore: Optional[BlobstoreService] = None) -> AssessmentInfo:
        upload_url = None
        if self.status == Status.STARTED:
            blobstore = blobstore or get_blobstore()
            upload_url = blobstore.create_upload_url(UPLOAD_CALLBACK + str(self.reference), upload_bucket())

        return AssessmentInfo(
            reference=str(self.reference) if include_reference else None,
            registered=to_millis(self.registered),
            updated=to_millis(self.updated),
            status=int(self.status),
            rating=self.rating_id,
            upload_url=upload_url,
            rating_info=self.rating.get_api_model() if self.rating is not None else None,
            files=[f.get_api_model() for f in self.files],
        )

    def get_api_summary(self) -> AssessmentSummary:
        return AssessmentSummary(
            reference=str(self.reference),
            updated=to_millis(self.updated),
            status=int(self.status),
            rating=self.rating_id,
        )

    @staticmethod
    async def get_all_for_borrower(borrower: Borrower) -> list[Assessment]:
        select = Assessment().build_select_sql(borrower).order_by(Assessment().get_column(ID))
        async with connect("Unable to fetch the list of assessments for the borrower with SQL") as conn:
            result = await conn.execute(select.statement())
            return [Assessment(row) for row in result.mappings().all()]
