"""Company User Domain Entity

Role assignment of a user inside a company. Feeds access decisions for
credit operations; not part of the balance bookkeeping itself.
"""

from datetime import datetime
from enum import Enum
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, String, UniqueConstraint
from src.domain.base import BaseModel, generate_uuid


class CompanyRole(str, Enum):
    """Roles a user may hold within a company"""
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    APPROVER = "APPROVER"
    BUYER = "BUYER"
    VIEWER = "VIEWER"


class CompanyUser(BaseModel, table=True):
    __tablename__ = "company_users"
    __table_args__ = (
        UniqueConstraint('company_id', 'user_id', name='uq_company_user'),
        Index('ix_company_users_user_id', 'user_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
    )

    company_id: str = Field(
        sa_column=Column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
    )

    user_id: str = Field(
        sa_column=Column(String(255), nullable=False),
    )

    role: CompanyRole = Field(default=CompanyRole.VIEWER)

    created_at: datetime = Field(default_factory=datetime.utcnow)
