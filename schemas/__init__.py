from schemas.assessment import AssessmentFileInfo, AssessmentInfo, AssessmentSummary
from schemas.errors import ErrorResult
from schemas.lookup import CountryInfo, LoanAmortizationInfo, RatingInfo
from schemas.user import (
    BankConnectionCreate,
    BankConnectionInfo,
    BorrowerCreate,
    BorrowerEditable,
    BorrowerViewable,
    InvestorCreate,
    InvestorViewable,
    UserCreate,
    UserEditable,
    UserViewable,
)

__all__ = [
    "AssessmentFileInfo",
    "AssessmentInfo",
    "AssessmentSummary",
    "BankConnectionCreate",
    "BankConnectionInfo",
    "BorrowerCreate",
    "BorrowerEditable",
    "BorrowerViewable",
    "CountryInfo",
    "ErrorResult",
    "InvestorCreate",
    "InvestorViewable",
    "LoanAmortizationInfo",
    "RatingInfo",
    "UserCreate",
    "UserEditable",
    "UserViewable",
]
