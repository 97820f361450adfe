from __future__ import annotations

from models.assessment import Assessment
from models.user import User, UserType
from schemas.user import BorrowerViewable


class Borrower(User):
    TABLE_NAME = "borrowers"
    USER_TYPE = UserType.BORROWER
    DETAIL_COLUMNS = ("employer", "job_title")
    VIEWABLE = BorrowerViewable

    async def get_assessments(self) -> list[Assessment]:
        return await Assessment.get_all_for_borrower(self)
