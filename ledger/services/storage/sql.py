"""
Relational Storage Implementation

DESIGN DECISION: The ledger runs on any database SQLAlchemy supports.
SQLite is the default so a fresh checkout works without setup; point
LEDGER_DB_URL at PostgreSQL for a shared deployment.

The store is an explicit handle: `open()` creates the engine and the
schema, `close()` disposes the connection pool. Every public call runs
in its own short session that commits on success and rolls back on error.
"""

from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, Generator, Optional
from uuid import UUID as PyUUID

import structlog
from pydantic import ValidationError as RecordError
from sqlalchemy import (
    JSON,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Numeric,
    String,
    Text,
    create_engine,
    event,
    func,
    select,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    joinedload,
    mapped_column,
    relationship,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator
from tenacity import Retrying, stop_after_attempt, wait_exponential

from ledger.config import DatabaseSettings
from ledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from ledger.models.ledger import (
    OwnerSummary,
    Role,
    SortOrder,
    Transaction,
    TransactionKind,
    User,
    UserSummary,
)
from ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)


class UUIDString(TypeDecorator):
    """UUID stored as String(36) for cross-database portability."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """Declarative base for the ledger tables."""

    type_annotation_map = {
        PyUUID: UUIDString(),
        Decimal: Numeric(18, 2),
        datetime: DateTime(),
    }


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[PyUUID] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    role: Mapped[Role] = mapped_column(
        SAEnum(Role, native_enum=False, length=10),
        nullable=False,
    )
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    transactions: Mapped[list["TransactionRow"]] = relationship(
        back_populates="owner",
        passive_deletes="all",
    )


class TransactionRow(Base):
    __tablename__ = "transactions"

    id: Mapped[PyUUID] = mapped_column(primary_key=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    kind: Mapped[TransactionKind] = mapped_column(
        SAEnum(TransactionKind, native_enum=False, length=10),
        nullable=False,
    )
    occurred_on: Mapped[datetime] = mapped_column(nullable=False, index=True)
    owner_id: Mapped[PyUUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    owner: Mapped[UserRow] = relationship(back_populates="transactions")


class AuditEventRow(Base):
    __tablename__ = "audit_events"

    event_id: Mapped[PyUUID] = mapped_column(primary_key=True)
    timestamp: Mapped[datetime] = mapped_column(nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    entity_id: Mapped[Optional[PyUUID]] = mapped_column(nullable=True, index=True)
    actor_id: Mapped[Optional[PyUUID]] = mapped_column(nullable=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SqlLedgerStore(LedgerStorageInterface):
    """
    SQLAlchemy implementation of the ledger store.

    Rows are converted to pydantic records before they leave a session,
    so nothing outside this module ever sees an ORM object.
    """

    def __init__(self, settings: Optional[DatabaseSettings] = None):
        self._settings = settings or DatabaseSettings()
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker[Session]] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _create_engine(self) -> Engine:
        url = self._settings.url
        if url.startswith("sqlite"):
            kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
                # One shared connection, otherwise every session sees an empty database
                kwargs["poolclass"] = StaticPool
            engine = create_engine(url, echo=self._settings.echo, **kwargs)
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            return engine
        return create_engine(url, echo=self._settings.echo, pool_pre_ping=True)

    def _ping(self, engine: Engine) -> None:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    def open(self) -> None:
        """Create the engine, verify connectivity and create missing tables."""
        if self._engine is not None:
            return

        engine = self._create_engine()
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._settings.connect_attempts),
                wait=wait_exponential(multiplier=1, min=2, max=10),
                reraise=True,
            ):
                with attempt:
                    self._ping(engine)
            Base.metadata.create_all(engine)
        except SQLAlchemyError as e:
            engine.dispose()
            raise ConnectionError(f"Failed to connect to database: {e}") from e

        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        logger.info("store_opened", dialect=engine.dialect.name)

    def close(self) -> None:
        """Dispose the connection pool."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("store_closed")

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around one store call.

        Commits on normal exit, rolls back and re-raises on error.
        """
        if self._session_factory is None:
            raise ConnectionError("Store is not open. Call open() first.")
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Row conversion
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_transaction(row: TransactionRow) -> Transaction:
        owner = row.owner
        try:
            return Transaction(
                id=row.id,
                description=row.description,
                amount=row.amount,
                kind=row.kind,
                occurred_on=row.occurred_on,
                owner_id=row.owner_id,
                owner=OwnerSummary(id=owner.id, name=owner.name, email=owner.email) if owner else None,
                created_at=row.created_at,
                updated_at=row.updated_at,
            )
        except RecordError as e:
            raise StorageError(f"Unreadable transaction row {row.id}: {e}") from e

    @staticmethod
    def _row_to_user(row: UserRow) -> User:
        try:
            return User(
                id=row.id,
                name=row.name,
                email=row.email,
                phone=row.phone,
                role=row.role,
                image=row.image,
                created_at=row.created_at,
            )
        except RecordError as e:
            raise StorageError(f"Unreadable user row {row.id}: {e}") from e

    @staticmethod
    def _transaction_query():
        return select(TransactionRow).options(joinedload(TransactionRow.owner))

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def create_transaction(self, transaction: Transaction) -> Transaction:
        try:
            with self.session_scope() as session:
                row = TransactionRow(
                    id=transaction.id,
                    description=transaction.description,
                    amount=transaction.amount,
                    kind=transaction.kind,
                    occurred_on=transaction.occurred_on,
                    owner_id=transaction.owner_id,
                    created_at=transaction.created_at,
                    updated_at=transaction.updated_at,
                )
                session.add(row)
                session.flush()
                row = session.scalars(
                    self._transaction_query().where(TransactionRow.id == transaction.id)
                ).one()
                return self._row_to_transaction(row)
        except IntegrityError as e:
            raise DuplicateError(f"Failed to save transaction: {e.orig}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save transaction: {e}") from e

    async def get_transaction(self, transaction_id: PyUUID) -> Optional[Transaction]:
        try:
            with self.session_scope() as session:
                row = session.scalars(
                    self._transaction_query().where(TransactionRow.id == transaction_id)
                ).one_or_none()
                return self._row_to_transaction(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get transaction: {e}") from e

    async def list_transactions(
        self,
        order: SortOrder = SortOrder.DESCENDING,
    ) -> list[Transaction]:
        column = TransactionRow.occurred_on
        ordering = column.desc() if order == SortOrder.DESCENDING else column.asc()
        try:
            with self.session_scope() as session:
                rows = session.scalars(self._transaction_query().order_by(ordering)).all()
                return [self._row_to_transaction(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list transactions: {e}") from e

    async def update_transaction(
        self,
        transaction_id: PyUUID,
        changes: dict[str, Any],
    ) -> Transaction:
        try:
            with self.session_scope() as session:
                row = session.get(TransactionRow, transaction_id)
                if row is None:
                    raise NotFoundError(f"Transaction not found: {transaction_id}")
                for field, value in changes.items():
                    setattr(row, field, value)
                row.updated_at = datetime.now()
                session.flush()
                return self._row_to_transaction(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update transaction: {e}") from e

    async def delete_transaction(self, transaction_id: PyUUID) -> None:
        try:
            with self.session_scope() as session:
                row = session.get(TransactionRow, transaction_id)
                if row is None:
                    raise NotFoundError(f"Transaction not found: {transaction_id}")
                session.delete(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete transaction: {e}") from e

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, user: User) -> User:
        try:
            with self.session_scope() as session:
                row = UserRow(
                    id=user.id,
                    name=user.name,
                    email=user.email,
                    phone=user.phone,
                    role=user.role,
                    image=user.image,
                    created_at=user.created_at,
                )
                session.add(row)
                session.flush()
                return self._row_to_user(row)
        except IntegrityError as e:
            raise DuplicateError(f"User already exists: {user.email}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save user: {e}") from e

    async def get_user(self, user_id: PyUUID) -> Optional[User]:
        try:
            with self.session_scope() as session:
                row = session.get(UserRow, user_id)
                return self._row_to_user(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get user: {e}") from e

    async def list_users(self) -> list[UserSummary]:
        query = (
            select(UserRow, func.count(TransactionRow.id))
            .outerjoin(TransactionRow, TransactionRow.owner_id == UserRow.id)
            .group_by(UserRow.id)
            .order_by(UserRow.created_at.desc())
        )
        try:
            with self.session_scope() as session:
                return [
                    UserSummary(
                        **self._row_to_user(row).model_dump(),
                        transaction_count=count,
                    )
                    for row, count in session.execute(query).all()
                ]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list users: {e}") from e

    async def update_user(self, user_id: PyUUID, changes: dict[str, Any]) -> User:
        try:
            with self.session_scope() as session:
                row = session.get(UserRow, user_id)
                if row is None:
                    raise NotFoundError(f"User not found: {user_id}")
                for field, value in changes.items():
                    setattr(row, field, value)
                session.flush()
                return self._row_to_user(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update user: {e}") from e

    async def delete_user(self, user_id: PyUUID) -> None:
        try:
            with self.session_scope() as session:
                row = session.get(UserRow, user_id)
                if row is None:
                    raise NotFoundError(f"User not found: {user_id}")
                session.delete(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete user: {e}") from e

    async def count_transactions(self, owner_id: PyUUID) -> int:
        query = select(func.count(TransactionRow.id)).where(TransactionRow.owner_id == owner_id)
        try:
            with self.session_scope() as session:
                return session.scalar(query) or 0
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to count transactions: {e}") from e


class SqlAuditStorage(AuditStorageInterface):
    """
    Audit events in the same database as the ledger.

    Append-only: there is no update or delete path.
    """

    def __init__(self, store: SqlLedgerStore):
        self._store = store

    @staticmethod
    def _row_to_event(row: AuditEventRow) -> AuditEvent:
        return AuditEvent(
            event_id=row.event_id,
            timestamp=row.timestamp,
            event_type=AuditEventType(row.event_type),
            severity=AuditSeverity(row.severity),
            entity_type=row.entity_type,
            entity_id=row.entity_id,
            actor_id=row.actor_id,
            description=row.description,
            details=row.details or {},
            error_message=row.error_message,
        )

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            with self._store.session_scope() as session:
                session.add(AuditEventRow(
                    event_id=event.event_id,
                    timestamp=event.timestamp,
                    event_type=event.event_type.value,
                    severity=event.severity.value,
                    entity_type=event.entity_type,
                    entity_id=event.entity_id,
                    actor_id=event.actor_id,
                    description=event.description,
                    details=event.details,
                    error_message=event.error_message,
                ))
            return True
        except (SQLAlchemyError, StorageError) as e:
            # Audit logging must not break the main flow
            logger.warning("audit_event_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: PyUUID,
    ) -> list[AuditEvent]:
        query = (
            select(AuditEventRow)
            .where(AuditEventRow.entity_type == entity_type)
            .where(AuditEventRow.entity_id == entity_id)
            .order_by(AuditEventRow.timestamp.asc())
        )
        try:
            with self._store.session_scope() as session:
                return [self._row_to_event(row) for row in session.scalars(query).all()]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        query = select(AuditEventRow).order_by(AuditEventRow.timestamp.desc()).limit(limit)
        try:
            with self._store.session_scope() as session:
                return [self._row_to_event(row) for row in session.scalars(query).all()]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get audit events: {e}") from e
