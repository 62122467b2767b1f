"""ReconcileLedger Use Case

Read-only audit of the two stored balances that are derived from history:
company available credit and payment refunded amount.
"""

import logging
import time
from datetime import datetime
from decimal import Decimal
from libs.result import Result, Return, Error
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.refund_repository import RefundRepository
from .dtos import CreditDiscrepancyDTO, RefundDiscrepancyDTO, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class ReconcileLedger:
    """
    Use Case: Detect balances that drifted from their history

    Business Rules:
    1. For every company, the latest credit transaction's available_after
       must equal available_credit (0 when the company has no transactions)
    2. For every payment, the sum of completed refunds must equal
       refunded_amount
    3. Discrepancies are logged and returned; nothing is modified
    """

    def __init__(
        self,
        company_repo: CompanyRepository,
        transaction_repo: CreditTransactionRepository,
        payment_repo: PaymentRepository,
        refund_repo: RefundRepository,
    ):
        self.company_repo = company_repo
        self.transaction_repo = transaction_repo
        self.payment_repo = payment_repo
        self.refund_repo = refund_repo

    async def execute(self) -> Result[ReconciliationResultDTO]:
        start_time = time.time()
        reconciliation_time = datetime.utcnow()

        try:
            logger.info("Starting credit and refund reconciliation")

            companies = await self.company_repo.get_all()
            credit_discrepancies = []
            for company in companies:
                latest = await self.transaction_repo.get_latest_by_company(company.id)
                expected = latest.available_after if latest else Decimal("0")
                if company.available_credit != expected:
                    discrepancy = company.available_credit - expected
                    credit_discrepancies.append(
                        CreditDiscrepancyDTO(
                            company_id=company.id,
                            available_credit=company.available_credit,
                            expected_available=expected,
                            discrepancy=discrepancy,
                        )
                    )
                    logger.warning(
                        f"Credit discrepancy for company {company.id}: "
                        f"available_credit={company.available_credit}, "
                        f"expected={expected}, discrepancy={discrepancy}"
                    )

            payments = await self.payment_repo.get_all()
            refund_discrepancies = []
            for payment in payments:
                completed_total = await self.refund_repo.get_completed_sum_by_payment(payment.id)
                if payment.refunded_amount != completed_total:
                    discrepancy = payment.refunded_amount - completed_total
                    refund_discrepancies.append(
                        RefundDiscrepancyDTO(
                            payment_id=payment.id,
                            refunded_amount=payment.refunded_amount,
                            completed_refunds_total=completed_total,
                            discrepancy=discrepancy,
                        )
                    )
                    logger.warning(
                        f"Refund discrepancy for payment {payment.id}: "
                        f"refunded_amount={payment.refunded_amount}, "
                        f"completed_refunds={completed_total}, discrepancy={discrepancy}"
                    )

            execution_time_ms = int((time.time() - start_time) * 1000)
            found = len(credit_discrepancies) + len(refund_discrepancies)

            response = ReconciliationResultDTO(
                total_companies_checked=len(companies),
                total_payments_checked=len(payments),
                discrepancies_found=found,
                credit_discrepancies=credit_discrepancies,
                refund_discrepancies=refund_discrepancies,
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )

            if found:
                logger.warning(
                    f"Reconciliation complete. Found {found} discrepancies across "
                    f"{len(companies)} companies and {len(payments)} payments in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. {len(companies)} companies and {len(payments)} "
                    f"payments balanced in {execution_time_ms}ms"
                )

            return Return.ok(response)

        except Exception as e:
            logger.error(f"Reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile balances",
                    reason=str(e),
                )
            )
