"""Credit API Routes

FastAPI routes for company credit accounts.
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.error import ClientError
from src.api.schemas.credit_request import (
    AdjustCreditRequestSchema,
    BulkUtilizationRequestSchema,
    CreateCompanyRequestSchema,
    CreditMovementRequestSchema,
    SetCreditLimitRequestSchema,
)
from src.app.services.access_guard import AccessGuard
from src.app.services.audit_log_service import AuditLogService
from src.app.use_cases.credit import (
    AdjustCredit,
    CreateCompany,
    GetBulkCreditUtilization,
    GetCreditInfo,
    ListCreditTransactions,
    ReleaseCredit,
    ReserveCredit,
    SetCreditLimit,
)
from src.app.use_cases.credit.dtos import (
    AdjustCreditCommandDTO,
    BulkCreditUtilizationResponseDTO,
    CompanyResponseDTO,
    CreateCompanyCommandDTO,
    CreditInfoResponseDTO,
    CreditMutationResponseDTO,
    CreditTransactionFiltersDTO,
    ListCreditTransactionsResponseDTO,
    ReleaseCreditCommandDTO,
    ReserveCreditCommandDTO,
    SetCreditLimitCommandDTO,
    SetCreditLimitResponseDTO,
)
from src.adapter.repositories.company_repository import SqlAlchemyCompanyRepository
from src.adapter.repositories.company_user_repository import SqlAlchemyCompanyUserRepository
from src.adapter.repositories.credit_transaction_repository import SqlAlchemyCreditTransactionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_access_guard, get_audit_log, get_current_user_id, get_session
from src.domain.company import LimitReductionPolicy

router = APIRouter(prefix="/companies", tags=["Credit"])

INSUFFICIENT_CREDIT_EXAMPLE = {
    402: {
        "description": "Insufficient credit",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "INSUFFICIENT_CREDIT",
                        "message": "Insufficient available credit. Requested: 600.00, Available: 500.00"
                    }
                }
            }
        }
    }
}


@router.post("", response_model=CompanyResponseDTO, status_code=status.HTTP_201_CREATED)
async def create_company(
    request: CreateCompanyRequestSchema,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
    audit_log: AuditLogService = Depends(get_audit_log),
):
    """
    Open a company credit account. The caller is registered as its OWNER.

    **Returns:**
    - 201: Company created
    - 400: Negative limit or blank name
    """
    use_case = CreateCompany(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyCompanyRepository(session),
        SqlAlchemyCompanyUserRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
        audit_log,
    )
    result = await use_case.execute(
        CreateCompanyCommandDTO(
            name=request.name,
            email=request.email,
            owner_user_id=user_id,
            initial_credit_limit=request.initial_credit_limit,
        )
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post("/credit/utilization", response_model=BulkCreditUtilizationResponseDTO)
async def get_bulk_credit_utilization(
    request: BulkUtilizationRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """Credit utilization for many companies at once (unknown ids are skipped)"""
    result = await GetBulkCreditUtilization(SqlAlchemyCompanyRepository(session)).execute(request.company_ids)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/{company_id}/credit", response_model=CreditInfoResponseDTO)
async def get_credit_info(
    company_id: str,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
    access_guard: AccessGuard = Depends(get_access_guard),
):
    """
    Get credit limit, available and used credit

    **Returns:**
    - 200: Credit info
    - 403: Caller may not view this company
    - 404: Company not found
    """
    use_case = GetCreditInfo(SqlAlchemyCompanyRepository(session), access_guard)
    result = await use_case.execute(company_id, acting_user_id=user_id)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.put("/{company_id}/credit/limit", response_model=SetCreditLimitResponseDTO)
async def set_credit_limit(
    company_id: str,
    request: SetCreditLimitRequestSchema,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
    access_guard: AccessGuard = Depends(get_access_guard),
    audit_log: AuditLogService = Depends(get_audit_log),
):
    """
    Set a new credit limit. Available credit moves by the same delta.

    **Returns:**
    - 200: Limit updated
    - 400: Negative limit
    - 403: Caller may not assign credit
    - 404: Company not found
    """
    use_case = SetCreditLimit(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyCompanyRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
        access_guard,
        audit_log,
        reduction_policy=LimitReductionPolicy(ApplicationConfig.CREDIT_LIMIT_REDUCTION_POLICY),
    )
    result = await use_case.execute(
        SetCreditLimitCommandDTO(
            company_id=company_id,
            new_limit=request.credit_limit,
            acting_user_id=user_id,
            reason=request.reason,
        )
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post(
    "/{company_id}/credit/reserve",
    response_model=CreditMutationResponseDTO,
    responses=INSUFFICIENT_CREDIT_EXAMPLE,
)
async def reserve_credit(
    company_id: str,
    request: CreditMovementRequestSchema,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
    access_guard: AccessGuard = Depends(get_access_guard),
    audit_log: AuditLogService = Depends(get_audit_log),
):
    """
    Reserve credit for an order or invoice.

    Repeated requests with the same idempotency_key return the original
    reservation without deducting again.

    **Returns:**
    - 200: Credit reserved
    - 400: Amount not positive
    - 402: Insufficient available credit
    - 403: Caller may not reserve credit
    - 404: Company not found
    """
    use_case = ReserveCredit(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyCompanyRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
        access_guard,
        audit_log,
    )
    result = await use_case.execute(
        ReserveCreditCommandDTO(
            company_id=company_id,
            amount=request.amount,
            reference_id=request.reference_id,
            reference_type=request.reference_type,
            acting_user_id=user_id,
            description=request.description,
            idempotency_key=request.idempotency_key,
        )
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post("/{company_id}/credit/release", response_model=CreditMutationResponseDTO)
async def release_credit(
    company_id: str,
    request: CreditMovementRequestSchema,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
    access_guard: AccessGuard = Depends(get_access_guard),
    audit_log: AuditLogService = Depends(get_audit_log),
):
    """Release reserved credit (capped at the credit limit)"""
    use_case = ReleaseCredit(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyCompanyRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
        access_guard,
        audit_log,
    )
    result = await use_case.execute(
        ReleaseCreditCommandDTO(
            company_id=company_id,
            amount=request.amount,
            reference_id=request.reference_id,
            reference_type=request.reference_type,
            acting_user_id=user_id,
            description=request.description,
            idempotency_key=request.idempotency_key,
        )
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post("/{company_id}/credit/adjust", response_model=CreditMutationResponseDTO)
async def adjust_credit(
    company_id: str,
    request: AdjustCreditRequestSchema,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
    access_guard: AccessGuard = Depends(get_access_guard),
    audit_log: AuditLogService = Depends(get_audit_log),
):
    """Signed manual correction of available credit (clamped to [0, limit])"""
    use_case = AdjustCredit(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyCompanyRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
        access_guard,
        audit_log,
    )
    result = await use_case.execute(
        AdjustCreditCommandDTO(
            company_id=company_id,
            amount=request.amount,
            acting_user_id=user_id,
            reason=request.reason,
        )
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/{company_id}/credit/transactions", response_model=ListCreditTransactionsResponseDTO)
async def list_credit_transactions(
    company_id: str,
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    types: Optional[List[str]] = Query(default=None, alias="type"),
    reference_id: Optional[str] = Query(default=None),
    page: int = Query(default=1),
    limit: int = Query(default=20, le=100),
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
    access_guard: AccessGuard = Depends(get_access_guard),
):
    """
    Credit transaction history, newest first

    **Query parameters:**
    - `start_date`, `end_date`: ISO datetimes bounding created_at
    - `type`: repeatable transaction type filter
    - `reference_id`: order/invoice identifier
    - `page` (default 1), `limit` (default 20, max 100)
    """
    use_case = ListCreditTransactions(SqlAlchemyCreditTransactionRepository(session), access_guard)
    result = await use_case.execute(
        company_id,
        filters=CreditTransactionFiltersDTO(
            start_date=start_date,
            end_date=end_date,
            types=types,
            reference_id=reference_id,
        ),
        page=page,
        limit=limit,
        acting_user_id=user_id,
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value
