from .reconcile_ledger import ReconcileLedger
from .dtos import CreditDiscrepancyDTO, RefundDiscrepancyDTO, ReconciliationResultDTO

__all__ = [
    "ReconcileLedger",
    "CreditDiscrepancyDTO",
    "RefundDiscrepancyDTO",
    "ReconciliationResultDTO",
]
