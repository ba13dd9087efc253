from uuid import uuid4
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column, String, Integer, DateTime, Float, Boolean, ForeignKey, Enum as PgEnum, JSON, Text, UniqueConstraint, Index
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# --- ENUMS ---

class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"

class TemplateStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"

class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit-card"
    CASH = "cash"

class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"

class SkipReason(str, Enum):
    """Why a template was not generated in a run. Skips are counted, not errors."""
    NOT_ACTIVE = "not_active"
    FUTURE_START = "future_start"
    PAST_END_DATE = "past_end_date"
    ALREADY_GENERATED_THIS_PERIOD = "already_generated_this_period"

class FailureReason(str, Enum):
    """Why a due template could not be generated. Recorded and retried next run."""
    INSUFFICIENT_FUNDS = "insufficient_funds"
    MISSING_ACCOUNT = "missing_account"
    PERSISTENCE_ERROR = "persistence_error"
    UNEXPECTED_ERROR = "unexpected_error"

# --- SQLALCHEMY MODELS ---

class Hub(Base):
    __tablename__ = "hubs"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=True)
    name = Column(String, nullable=False)
    budget_carry_over = Column(Boolean, default=False, nullable=False)
    budget_email_warnings = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    accounts = relationship("FinancialAccount", back_populates="hub")
    budgets = relationship("Budget", back_populates="hub")

class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    email = Column(String, unique=True, nullable=False)
    display_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

class FinancialAccount(Base):
    __tablename__ = "financial_accounts"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    hub_id = Column(String, ForeignKey("hubs.id"), nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=True)
    name = Column(String, nullable=False)
    type = Column(PgEnum(AccountType), default=AccountType.CASH, nullable=False)
    # Only mutated together with a ledger insert in the same database transaction
    balance = Column(Float, default=0.0, nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    hub = relationship("Hub", back_populates="accounts")

class TransactionCategory(Base):
    __tablename__ = "transaction_categories"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    hub_id = Column(String, ForeignKey("hubs.id"), nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

class RecurringTransactionTemplate(Base):
    """Blueprint from which concrete transactions are periodically generated"""
    __tablename__ = "recurring_transaction_templates"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    hub_id = Column(String, ForeignKey("hubs.id"), nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=True)

    # Transaction related fields
    financial_account_id = Column(String, ForeignKey("financial_accounts.id"), nullable=False)
    destination_account_id = Column(String, ForeignKey("financial_accounts.id"), nullable=True)
    category_id = Column(String, ForeignKey("transaction_categories.id"), nullable=True)
    type = Column(PgEnum(TransactionType), default=TransactionType.INCOME, nullable=False)
    source = Column(String, nullable=True)
    amount = Column(Float, default=0.0, nullable=False)
    note = Column(Text, nullable=True)

    # Recurrence related fields
    frequency_days = Column(Integer, default=30, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)  # Null for infinite recurrence
    status = Column(PgEnum(TemplateStatus), default=TemplateStatus.ACTIVE, nullable=False)
    archived_at = Column(DateTime, nullable=True)

    # Generation tracking fields
    last_generated_date = Column(DateTime, nullable=True)
    last_failed_date = Column(DateTime, nullable=True)
    failure_reason = Column(String, nullable=True)
    consecutive_failures = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    account = relationship("FinancialAccount", foreign_keys=[financial_account_id])
    destination_account = relationship("FinancialAccount", foreign_keys=[destination_account_id])
    category = relationship("TransactionCategory")
    transactions = relationship("Transaction", back_populates="recurring_template")

class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    hub_id = Column(String, ForeignKey("hubs.id"), nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=True)
    financial_account_id = Column(String, ForeignKey("financial_accounts.id"), nullable=False)
    destination_account_id = Column(String, ForeignKey("financial_accounts.id"), nullable=True)
    category_id = Column(String, ForeignKey("transaction_categories.id"), nullable=True)
    type = Column(PgEnum(TransactionType), default=TransactionType.INCOME, nullable=False)
    # Null for manual entries
    recurring_template_id = Column(String, ForeignKey("recurring_transaction_templates.id"), nullable=True)
    source = Column(String, nullable=True)
    amount = Column(Float, default=0.0, nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    recurring_template = relationship("RecurringTransactionTemplate", back_populates="transactions")
    category = relationship("TransactionCategory")

class Budget(Base):
    __tablename__ = "budgets"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    hub_id = Column(String, ForeignKey("hubs.id"), nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=True)
    category_id = Column(String, ForeignKey("transaction_categories.id"), nullable=True)
    allocated_amount = Column(Float, default=0.0, nullable=False)
    spent_amount = Column(Float, default=0.0, nullable=False)  # manual "IST" adjustment
    warning_percentage = Column(Integer, default=80, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    hub = relationship("Hub", back_populates="budgets")
    category = relationship("TransactionCategory")
    instances = relationship("BudgetInstance", back_populates="budget")

class BudgetInstance(Base):
    """Per-month snapshot of a budget, including the amount carried over"""
    __tablename__ = "budget_instances"
    __table_args__ = (
        UniqueConstraint("budget_id", "month", "year", name="uq_budget_instances_budget_month_year"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    budget_id = Column(String, ForeignKey("budgets.id"), nullable=False)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    allocated_amount = Column(Float, default=0.0, nullable=False)
    carried_over_amount = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    budget = relationship("Budget", back_populates="instances")

class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_hub_id", "hub_id"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    hub_id = Column(String, ForeignKey("hubs.id"), nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=True)
    type = Column(PgEnum(NotificationType), nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    notification_metadata = Column(JSON, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
