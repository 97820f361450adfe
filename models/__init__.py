from models.assessment import Assessment, Decision, Status
from models.assessment_file import AssessmentFile
from models.bank_connection import BankConnection
from models.borrower import Borrower
from models.country import Country
from models.investor import Investor
from models.loan_amortization import LoanAmortization
from models.rating import Rating
from models.user import User, UserType, load_user

__all__ = [
    "Assessment",
    "AssessmentFile",
    "BankConnection",
    "Borrower",
    "Country",
    "Decision",
    "Investor",
    "LoanAmortization",
    "Rating",
    "Status",
    "User",
    "UserType",
    "load_user",
]
