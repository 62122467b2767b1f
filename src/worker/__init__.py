"""Background workers for credit and refund reconciliation"""
from .ledger_reconciler import LedgerReconcilerWorker
from .refund_reconciler import RefundReconcilerWorker

__all__ = ["LedgerReconcilerWorker", "RefundReconcilerWorker"]
