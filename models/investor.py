from __future__ import annotations

from models.user import User, UserType
from schemas.user import InvestorViewable


class Investor(User):
    TABLE_NAME = "investors"
    USER_TYPE = UserType.INVESTOR
    VIEWABLE = InvestorViewable
