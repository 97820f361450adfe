from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class BankConnectionCreate(BaseModel):
    institution: str = Field(..., min_length=3, max_length=16)
    transit: str = Field(..., min_length=5, max_length=16)
    account: str = Field(..., min_length=4, max_length=32)


class BankConnectionInfo(BaseModel):
    reference: str
    institution: str
    transit: str
    account: str
    created: Optional[datetime] = None


class UserEditable(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    address1: str = Field(..., max_length=256)
    address2: Optional[str] = Field(None, max_length=256)
    address3: Optional[str] = Field(None, max_length=256)
    city: str = Field(..., max_length=128)
    province: Optional[str] = Field(None, max_length=128)
    post_code: Optional[str] = Field(None, alias="postCode", max_length=32)
    phone: Optional[str] = Field(None, max_length=32)

    model_config = {"populate_by_name": True}


class BorrowerEditable(UserEditable):
    employer: Optional[str] = Field(None, max_length=256)
    job_title: Optional[str] = Field(None, alias="jobTitle", max_length=256)


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=256)
    password: str = Field(..., min_length=8, max_length=72)
    country: str = Field(..., min_length=2, max_length=2, description="ISO 3166-1 alpha-2 country code")
    phone: Optional[str] = Field(None, max_length=32)

    model_config = {"populate_by_name": True}


class BorrowerCreate(UserCreate):
    employer: Optional[str] = Field(None, max_length=256)
    job_title: Optional[str] = Field(None, alias="jobTitle", max_length=256)


class InvestorCreate(UserCreate):
    pass


class UserViewable(BaseModel):
    reference: str
    name: str
    email: str
    address1: str
    address2: Optional[str] = None
    address3: Optional[str] = None
    city: str
    province: Optional[str] = None
    post_code: Optional[str] = Field(None, alias="postCode")
    country: Optional[str] = None
    phone: Optional[str] = None
    bank_connections: Optional[list[BankConnectionInfo]] = Field(None, alias="bankConnections")

    model_config = {"populate_by_name": True}


class BorrowerViewable(UserViewable):
    employer: Optional[str] = None
    job_title: Optional[str] = Field(None, alias="jobTitle")


class InvestorViewable(UserViewable):
    pass
