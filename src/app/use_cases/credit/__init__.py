"""Credit ledger use cases"""
from .create_company import CreateCompany
from .get_credit_info import GetCreditInfo
from .set_credit_limit import SetCreditLimit
from .reserve_credit import ReserveCredit
from .release_credit import ReleaseCredit
from .adjust_credit import AdjustCredit
from .list_credit_transactions import ListCreditTransactions
from .get_bulk_credit_utilization import GetBulkCreditUtilization
from .dtos import (
    CreateCompanyCommandDTO,
    CompanyResponseDTO,
    CreditInfoResponseDTO,
    SetCreditLimitCommandDTO,
    SetCreditLimitResponseDTO,
    ReserveCreditCommandDTO,
    ReleaseCreditCommandDTO,
    AdjustCreditCommandDTO,
    CreditMutationResponseDTO,
    CreditTransactionFiltersDTO,
    CreditTransactionDTO,
    ListCreditTransactionsResponseDTO,
    CreditUtilizationDTO,
    BulkCreditUtilizationResponseDTO,
)

__all__ = [
    "CreateCompany",
    "GetCreditInfo",
    "SetCreditLimit",
    "ReserveCredit",
    "ReleaseCredit",
    "AdjustCredit",
    "ListCreditTransactions",
    "GetBulkCreditUtilization",
    "CreateCompanyCommandDTO",
    "CompanyResponseDTO",
    "CreditInfoResponseDTO",
    "SetCreditLimitCommandDTO",
    "SetCreditLimitResponseDTO",
    "ReserveCreditCommandDTO",
    "ReleaseCreditCommandDTO",
    "AdjustCreditCommandDTO",
    "CreditMutationResponseDTO",
    "CreditTransactionFiltersDTO",
    "CreditTransactionDTO",
    "ListCreditTransactionsResponseDTO",
    "CreditUtilizationDTO",
    "BulkCreditUtilizationResponseDTO",
]
