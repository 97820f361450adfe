from __future__ import annotations

from enum import Enum
from typing import Any, Union

from fastapi import APIRouter, Response

from api.errors import ApiError, ErrorCode
from config import settings
from models import BankConnection, Borrower, Country, Investor, User, UserType, load_user
from schemas.user import BankConnectionCreate, BorrowerCreate, BorrowerEditable, InvestorCreate, UserEditable

router = APIRouter(prefix=settings.base_path, tags=["users"])

MSG_USER_NOT_FOUND = "User not found"
MSG_BANK_NOT_FOUND = "Bank connection not found"


class UserPath(str, Enum):
    BORROWERS = "borrowers"
    INVESTORS = "investors"


USER_PATH_TYPES = {
    UserPath.BORROWERS: UserType.BORROWER,
    UserPath.INVESTORS: UserType.INVESTOR,
}


async def get_user_or_404(user_type: UserType, reference: str) -> User:
    user = await load_user(user_type, reference)
    if user is None:
        raise ApiError(404, ErrorCode.USER_NOT_FOUND, MSG_USER_NOT_FOUND)
    return user


async def _viewable_response(user: User, with_connected_info: bool = False) -> dict[str, Any]:
    viewable = await user.get_viewable(with_connected_info)
    return viewable.model_dump(by_alias=True, exclude_none=True, mode="json")


async def _register(user: User, body: Union[BorrowerCreate, InvestorCreate]) -> dict[str, Any]:
    country = await Country().get_for_code(body.country)
    if country is None:
        raise ApiError(400, ErrorCode.COUNTRY_NOT_FOUND, f"Unknown country code: {body.country}")
    if await type(user)().get_for_email(body.email) is not None:
        raise ApiError(409, ErrorCode.EMAIL_IN_USE, "Email already in use")

    user.country_id = country.id
    user.set_password(body.password)
    user.phone = body.phone
    for column in user.DETAIL_COLUMNS:
        setattr(user, column, getattr(body, column, None))
    if not await user.add_to_database():
        raise ApiError(500, ErrorCode.USER_NOT_SAVED, "Unable to register the user")
    return await _viewable_response(user)


async def _edit(user_type: UserType, reference: str, body: UserEditable) -> dict[str, Any]:
    user = await get_user_or_404(user_type, reference)
    user.update_from_editable(body)
    if not await user.save():
        raise ApiError(500, ErrorCode.USER_NOT_SAVED, "Unable to update the user")
    return await _viewable_response(user)


@router.post("/borrowers", response_model=dict, status_code=201)
async def register_borrower(body: BorrowerCreate):
    return await _register(Borrower(name=body.name, email=body.email), body)


@router.post("/investors", response_model=dict, status_code=201)
async def register_investor(body: InvestorCreate):
    return await _register(Investor(name=body.name, email=body.email), body)


@router.put("/borrowers/{reference}", response_model=dict)
async def edit_borrower(reference: str, body: BorrowerEditable):
    return await _edit(UserType.BORROWER, reference, body)


@router.put("/investors/{reference}", response_model=dict)
async def edit_investor(reference: str, body: UserEditable):
    return await _edit(UserType.INVESTOR, reference, body)


@router.get("/{user_path}/{reference}", response_model=dict)
async def get_user(user_path: UserPath, reference: str, connected: bool = False):
    user = await get_user_or_404(USER_PATH_TYPES[user_path], reference)
    return await _viewable_response(user, with_connected_info=connected)


@router.get("/{user_path}/{reference}/banks", response_model=list[dict])
async def list_bank_connections(user_path: UserPath, reference: str):
    user = await get_user_or_404(USER_PATH_TYPES[user_path], reference)
    await user.fetch_connected_info()
    return [b.get_api_model().model_dump(mode="json") for b in user.bank_connections]


@router.post("/{user_path}/{reference}/banks", response_model=dict, status_code=201)
async def add_bank_connection(user_path: UserPath, reference: str, body: BankConnectionCreate):
    user = await get_user_or_404(USER_PATH_TYPES[user_path], reference)
    bank = BankConnection(institution=body.institution, transit=body.transit, account=body.account)
    if not await bank.add_to_database(user):
        raise ApiError(500, ErrorCode.BANK_NOT_SAVED, "Unable to add the bank connection")
    return bank.get_api_model().model_dump(mode="json")


@router.delete("/{user_path}/{reference}/banks/{bank_reference}", status_code=204)
async def remove_bank_connection(user_path: UserPath, reference: str, bank_reference: str):
    user = await get_user_or_404(USER_PATH_TYPES[user_path], reference)
    bank = await BankConnection().get_for_reference(user, bank_reference)
    if bank is None or not await bank.remove_from_database():
        raise ApiError(404, ErrorCode.BANK_NOT_FOUND, MSG_BANK_NOT_FOUND)
    return Response(status_code=204)
