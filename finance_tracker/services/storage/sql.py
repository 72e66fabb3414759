"""
SQLAlchemy Storage Implementation

The production backend. Defaults to a local SQLite file; point
DATABASE_URL at Postgres (or anything SQLAlchemy speaks) to use a server.

Every public method runs in exactly one session transaction: a method
either commits completely or rolls back completely. That is what makes
account deletion (cascade) and category deletion (reassign then remove)
atomic.

Driver and connection failures are translated to StoreUnavailableError so
the caller can tell "try again" apart from "bad request".
"""

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Iterator, Optional, Sequence

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    TypeDecorator,
    create_engine,
    delete,
    event,
    func,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from finance_tracker.models.ledger import (
    Category,
    FinancialAccount,
    Transaction,
    TransactionInput,
    TransactionType,
    User,
)
from finance_tracker.observability import get_logger
from finance_tracker.services.storage.interface import (
    DuplicateError,
    LedgerStore,
    StoreError,
    StoreUnavailableError,
)


Base = declarative_base()

_CENT = Decimal("0.01")


class Cents(TypeDecorator):
    """
    Money stored as a whole number of cents.

    SQLite keeps NUMERIC columns as REAL, which loses digits past about 15
    significant figures. An 18-digit amount fits a BIGINT exactly.
    """

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(Decimal(value).quantize(_CENT).scaleb(2))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value).scaleb(-2)


# --- Tables ---

class UserRow(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    full_name = Column(String(100), nullable=False)
    password = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class FinancialAccountRow(Base):
    __tablename__ = "financial_accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_protected = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class CategoryRow(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    type = Column(String(10), nullable=False)  # 'income' or 'expense'
    is_fallback = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class TransactionRow(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_account_date", "financial_account_id", "date"),
    )

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    amount = Column(Cents, nullable=False)
    type = Column(String(10), nullable=False)
    date = Column(Date, nullable=False)
    financial_account_id = Column(
        Integer, ForeignKey("financial_accounts.id", ondelete="CASCADE"), nullable=False
    )
    category_id = Column(
        Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SqlLedgerStore(LedgerStore):
    """
    SQLAlchemy implementation of the ledger store.

    Rows are converted to the pydantic entities on the way out; nothing
    outside this module ever sees an ORM object.
    """

    def __init__(self, url: str, echo: bool = False):
        is_sqlite = url.startswith("sqlite")
        self._engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False} if is_sqlite else {},
        )
        if is_sqlite:
            event.listen(self._engine, "connect", _enable_sqlite_foreign_keys)
        self._sessions = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )
        self._logger = get_logger(__name__)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """One unit of work: commit on success, roll back on any failure."""
        session = self._sessions()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise StoreError(f"Integrity constraint violated: {e.orig}") from e
        except SQLAlchemyError as e:
            session.rollback()
            self._logger.error("store_operation_failed", error=str(e))
            raise StoreUnavailableError(f"Database operation failed: {e}") from e
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(OperationalError),
        reraise=True,
    )
    def _create_schema(self) -> None:
        Base.metadata.create_all(self._engine)

    async def initialize(self) -> None:
        """Create tables if missing. Retries while the database is unreachable."""
        try:
            self._create_schema()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Could not initialize database: {e}") from e
        self._logger.info("store_initialized", dialect=self._engine.dialect.name)

    def dispose(self) -> None:
        """Close pooled connections."""
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def add_user(
        self,
        email: str,
        full_name: str,
        password: str,
        default_account_names: Sequence[str] = (),
    ) -> User:
        email = email.strip().lower()
        with self._session() as session:
            existing = session.scalar(select(UserRow.id).where(UserRow.email == email))
            if existing is not None:
                raise DuplicateError(f"Email already registered: {email}")

            row = UserRow(
                email=email,
                full_name=full_name,
                password=password,
                created_at=datetime.utcnow(),
            )
            session.add(row)
            session.flush()
            for name in default_account_names:
                session.add(FinancialAccountRow(
                    name=name,
                    user_id=row.id,
                    is_protected=True,
                    created_at=datetime.utcnow(),
                ))
            return User.model_validate(row)

    async def get_user(self, user_id: int) -> Optional[User]:
        with self._session() as session:
            row = session.get(UserRow, user_id)
            return User.model_validate(row) if row else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        with self._session() as session:
            row = session.scalar(
                select(UserRow).where(func.lower(UserRow.email) == email.strip().lower())
            )
            return User.model_validate(row) if row else None

    # ------------------------------------------------------------------
    # Financial accounts
    # ------------------------------------------------------------------

    async def add_account(
        self,
        user_id: int,
        name: str,
        is_protected: bool = False,
    ) -> FinancialAccount:
        with self._session() as session:
            row = FinancialAccountRow(
                name=name,
                user_id=user_id,
                is_protected=is_protected,
                created_at=datetime.utcnow(),
            )
            session.add(row)
            session.flush()
            return FinancialAccount.model_validate(row)

    async def get_account(self, account_id: int) -> Optional[FinancialAccount]:
        with self._session() as session:
            row = session.get(FinancialAccountRow, account_id)
            return FinancialAccount.model_validate(row) if row else None

    async def list_accounts(self, user_id: int) -> list[FinancialAccount]:
        with self._session() as session:
            rows = session.scalars(
                select(FinancialAccountRow)
                .where(FinancialAccountRow.user_id == user_id)
                .order_by(FinancialAccountRow.name, FinancialAccountRow.id)
            )
            return [FinancialAccount.model_validate(row) for row in rows]

    async def delete_account(self, account_id: int) -> int:
        with self._session() as session:
            removed = session.execute(
                delete(TransactionRow).where(TransactionRow.financial_account_id == account_id)
            ).rowcount
            session.execute(
                delete(FinancialAccountRow).where(FinancialAccountRow.id == account_id)
            )
            return removed or 0

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def add_category(
        self,
        name: str,
        type: TransactionType,
        is_fallback: bool = False,
    ) -> Category:
        with self._session() as session:
            row = CategoryRow(
                name=name,
                type=TransactionType(type).value,
                is_fallback=is_fallback,
                created_at=datetime.utcnow(),
            )
            session.add(row)
            session.flush()
            return Category.model_validate(row)

    async def get_category(self, category_id: int) -> Optional[Category]:
        with self._session() as session:
            row = session.get(CategoryRow, category_id)
            return Category.model_validate(row) if row else None

    async def list_categories(self) -> list[Category]:
        with self._session() as session:
            rows = session.scalars(select(CategoryRow).order_by(CategoryRow.name, CategoryRow.id))
            return [Category.model_validate(row) for row in rows]

    async def get_fallback_category(self, type: TransactionType) -> Optional[Category]:
        with self._session() as session:
            row = session.scalar(
                select(CategoryRow)
                .where(CategoryRow.is_fallback.is_(True))
                .where(CategoryRow.type == TransactionType(type).value)
                .order_by(CategoryRow.id)
                .limit(1)
            )
            return Category.model_validate(row) if row else None

    async def delete_category(self, category_id: int, fallback_id: int) -> int:
        with self._session() as session:
            if session.get(CategoryRow, fallback_id) is None:
                raise StoreError(f"Fallback category does not exist: {fallback_id}")

            moved = session.execute(
                update(TransactionRow)
                .where(TransactionRow.category_id == category_id)
                .values(category_id=fallback_id)
            ).rowcount
            self._remove_category_row(session, category_id)
            return moved or 0

    def _remove_category_row(self, session: Session, category_id: int) -> None:
        session.execute(delete(CategoryRow).where(CategoryRow.id == category_id))

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    async def add_transaction(self, data: TransactionInput) -> Transaction:
        with self._session() as session:
            row = TransactionRow(
                title=data.title,
                amount=data.amount,
                type=data.type.value,
                date=data.date,
                financial_account_id=data.financial_account_id,
                category_id=data.category_id,
                created_at=datetime.utcnow(),
            )
            session.add(row)
            session.flush()
            return Transaction.model_validate(row)

    async def list_transactions(
        self,
        account_ids: Sequence[int],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        if not account_ids:
            return []

        query = select(TransactionRow).where(
            TransactionRow.financial_account_id.in_(list(account_ids))
        )
        if date_from:
            query = query.where(TransactionRow.date >= date_from)
        if date_to:
            query = query.where(TransactionRow.date < date_to)
        query = query.order_by(TransactionRow.date.desc(), TransactionRow.id.asc())

        with self._session() as session:
            return [Transaction.model_validate(row) for row in session.scalars(query)]
