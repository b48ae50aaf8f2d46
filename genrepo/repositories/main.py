"""
Generic repository over one mapped record type.

MainRepository gives every model the same CRUD, counting, pagination and
transaction operations. Callers shape queries by passing query modifiers,
plain functions from Query to Query, which are applied left to right on top
of ``session.query(Model)``:

    def active(query):
        return query.filter(Widget.active.is_(True))

    def newest_first(query):
        return query.order_by(Widget.created_at.desc())

    repo = MainRepository(Widget, session)
    widgets = repo.find_all(active, newest_first)

Operations flush but never commit. Commit belongs to whoever owns the
session (``get_db_context``) or to ``with_transaction``.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generic, Iterable, Iterator, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import inspect
from sqlalchemy.exc import ArgumentError, InvalidRequestError, NoResultFound
from sqlalchemy.orm import Query, Session, scoped_session

from genrepo.core.constants import SYNCHRONIZE_SESSION, TRANSACTION_DEPTH_KEY, ErrorKind, TransactionOutcome
from genrepo.core.errors import classify_error
from genrepo.database.session import SessionHandle, get_global_session
from genrepo.models.base import Base
from genrepo.repositories.pagination import Page, Pagination, max_page_for

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

QueryModifier = Callable[[Query], Query]
"""A filter, join, sort or eager-load clause applied to a query in progress."""


def apply_modifiers(query: Query, modifiers: Iterable[QueryModifier]) -> Query:
    """Fold modifiers over a query, left to right."""
    for modifier in modifiers:
        query = modifier(query)
    return query


class MainRepository(Generic[ModelT]):
    """
    CRUD and query facade for one SQLAlchemy model.

    Type Parameters:
        ModelT: The mapped class this repository manages.

    Construction modes:
        MainRepository(Widget, session)  # explicit handle
        MainRepository(Widget)           # process-wide handle from init_global_session()

    The model must have a single-column primary key; it is the identifier
    used by find_by_id, update and delete.
    """

    def __init__(self, model: Type[ModelT], session: Optional[SessionHandle] = None):
        """
        Initialize the repository.

        Args:
            model: The mapped class (not an instance), e.g. Widget
            session: Session or scoped_session; None selects the global handle

        Raises:
            ArgumentError: If the model has a composite primary key
            RuntimeError: If session is None and no global handle is registered
        """
        mapper = inspect(model)
        if len(mapper.primary_key) != 1:
            raise ArgumentError(
                f"{model.__name__} must have exactly one primary key column, "
                f"found {len(mapper.primary_key)}"
            )

        self.model = model
        self.session = session if session is not None else get_global_session()
        self._mapper = mapper
        self._identifier_key = mapper.get_property_by_column(mapper.primary_key[0]).key

    def __repr__(self) -> str:
        return f"<MainRepository({self.model.__name__})>"

    @property
    def _identifier(self):
        return getattr(self.model, self._identifier_key)

    def _log(self, operation: str, **fields: Any) -> None:
        logger.debug(
            f"repo.{operation}",
            extra={"model": self.model.__name__, "operation": operation, **fields},
        )

    def for_session(self, session: SessionHandle) -> "MainRepository[ModelT]":
        """Return a repository for the same model bound to another handle."""
        return type(self)(self.model, session)

    # ========================================
    # Query Composition
    # ========================================

    def query_builder(self, *modifiers: QueryModifier) -> Query:
        """
        Return the composed, unexecuted query.

        This is an escape hatch: the result is a SQLAlchemy Query, so code
        that uses it is tied to SQLAlchemy. Prefer the other operations.

        Example:
            names = repo.query_builder(active).with_entities(Widget.name).all()
        """
        return apply_modifiers(self.session.query(self.model), modifiers)

    # ========================================
    # Reads
    # ========================================

    def find_by_id(self, identifier: Any, *modifiers: QueryModifier) -> ModelT:
        """
        Fetch the single row whose primary key equals identifier.

        The identifier condition goes on the base query before the
        modifiers, so modifiers that apply limit or offset still work.

        Raises:
            NoResultFound: If no row matches (after modifiers)
        """
        self._log("find_by_id", identifier=identifier)
        base = self.session.query(self.model).filter(self._identifier == identifier)
        record = apply_modifiers(base, modifiers).first()
        if record is None:
            raise NoResultFound(
                f"No {self.model.__name__} row with identifier {identifier!r}"
            )
        return record

    def find_all(self, *modifiers: QueryModifier) -> List[ModelT]:
        """Fetch every matching row. Order is whatever the modifiers impose."""
        records = self.query_builder(*modifiers).all()
        self._log("find_all", rows=len(records))
        return records

    def find_all_paginated(
        self,
        pagination: Pagination,
        *modifiers: QueryModifier,
    ) -> Page[ModelT]:
        """
        Fetch one page of matching rows and the number of pages.

        The count ignores limit and offset. Count and fetch are separate
        statements, so concurrent writes between them can make the two
        disagree.

        Returns:
            Page(records, max_page) where max_page = ceil(count / limit)
        """
        query = self.query_builder(*modifiers)
        count = query.count()
        records = query.limit(pagination.limit).offset(pagination.offset).all()
        max_page = max_page_for(count, pagination.limit)

        self._log(
            "find_all_paginated",
            page=pagination.page,
            limit=pagination.limit,
            count=count,
            max_page=max_page,
        )
        return Page(records, max_page)

    def count(self, *modifiers: QueryModifier) -> int:
        """Count matching rows."""
        count = self.query_builder(*modifiers).count()
        self._log("count", count=count)
        return count

    def exist(self, *modifiers: QueryModifier) -> bool:
        """Check whether any row matches."""
        return self.count(*modifiers) > 0

    # ========================================
    # Writes
    # ========================================

    def create(self, record: ModelT, *modifiers: QueryModifier) -> ModelT:
        """
        Insert a record and flush it.

        The record is added through the composed query's session, so a
        modifier may redirect it with ``query.with_session(other)``.
        Generated values (primary key, server defaults) are populated on the
        same instance, which is returned.

        Raises:
            IntegrityError: If a database constraint rejects the row
        """
        session = self.query_builder(*modifiers).session
        session.add(record)
        session.flush()

        self._log("create", identifier=getattr(record, self._identifier_key))
        return record

    def update(
        self,
        record: ModelT,
        identifier: Any = None,
        *modifiers: QueryModifier,
    ) -> ModelT:
        """
        Overwrite every column of the row identified by identifier.

        Full-save semantics: each mapped column is written from record. On a
        new (transient) record, an attribute that was never set is written as
        its column's scalar default, or NULL when it has none; columns with
        server-side or callable defaults keep their stored value. Columns
        with an ``onupdate`` are left to the database.

        Args:
            record: Instance holding the new column values
            identifier: Target primary key; None takes it from record.
                An explicit identifier wins over the record's own.
            *modifiers: Further narrow which row may be updated

        Raises:
            InvalidRequestError: If no identifier is given or present on record
            NoResultFound: If no row matches identifier and modifiers
        """
        if identifier is None:
            identifier = getattr(record, self._identifier_key)
            if identifier is None:
                raise InvalidRequestError(
                    f"Cannot update {self.model.__name__} without an identifier"
                )

        values = self._full_row_values(record)
        query = self._bulk_target(identifier, modifiers)
        matched = query.update(values, synchronize_session=SYNCHRONIZE_SESSION)

        self._log("update", identifier=identifier, rows=matched)
        if matched == 0:
            raise NoResultFound(
                f"No {self.model.__name__} row with identifier {identifier!r} matched the update"
            )

        state = inspect(record)
        if state.transient or state.detached:
            setattr(record, self._identifier_key, identifier)
        return record

    def _full_row_values(self, record: ModelT) -> Dict[str, Any]:
        state = inspect(record)
        values = {}

        for attr in self._mapper.column_attrs:
            column = attr.columns[0]
            if column.primary_key or column.onupdate is not None or column.server_onupdate is not None:
                continue

            if attr.key in state.dict or state.has_identity:
                values[attr.key] = getattr(record, attr.key)
            elif column.default is not None and column.default.is_scalar:
                values[attr.key] = column.default.arg
            elif column.default is None and column.server_default is None:
                values[attr.key] = None

        return values

    def delete(self, record: ModelT, *modifiers: QueryModifier) -> None:
        """
        Delete the rows matching record's primary key and the modifiers.

        A record without a primary key deletes whatever the modifiers match.
        Deleting a row that is already gone is a no-op.

        Raises:
            InvalidRequestError: If record has no primary key and no modifiers
                were given, which would delete every row
        """
        identifier = getattr(record, self._identifier_key)
        if identifier is None and not modifiers:
            raise InvalidRequestError(
                f"Refusing to delete from {self.model.__name__} without an identifier or modifiers"
            )

        query = self._bulk_target(identifier, modifiers)
        deleted = query.delete(synchronize_session=SYNCHRONIZE_SESSION)
        self._log("delete", identifier=identifier, rows=deleted)

    def _bulk_target(self, identifier: Any, modifiers: Tuple[QueryModifier, ...]) -> Query:
        """
        Build a plain query for bulk UPDATE/DELETE.

        Query.update() and Query.delete() refuse joined queries, so the
        modifiers are applied to a subquery of identifiers instead.
        """
        composed = self.query_builder(*modifiers)
        target = composed.session.query(self.model)

        if identifier is not None:
            target = target.filter(self._identifier == identifier)
        if modifiers:
            matched_ids = composed.with_entities(self._identifier).scalar_subquery()
            target = target.filter(self._identifier.in_(matched_ids))

        return target

    # ========================================
    # Transactions
    # ========================================

    @contextmanager
    def transaction(self) -> Iterator["MainRepository[ModelT]"]:
        """
        Scope a transaction and yield a repository bound to it.

        The outermost scope on a session owns the session's transaction,
        including one the session began on its own at an earlier read:
        leaving the block normally commits it, any exception (including
        KeyboardInterrupt and SystemExit) rolls it back and is re-raised.
        A scope opened inside another transaction() scope on the same
        session uses a SAVEPOINT, and the outer scope keeps the commit.

        Usage:
            with repo.transaction() as tx_repo:
                tx_repo.create(Widget(name="bolt"))
        """
        session: Session = self.session() if isinstance(self.session, scoped_session) else self.session
        depth = session.info.get(TRANSACTION_DEPTH_KEY, 0)
        nested = depth > 0
        committing = False
        tx_repo = self.for_session(session)

        session.info[TRANSACTION_DEPTH_KEY] = depth + 1
        try:
            if nested:
                with session.begin_nested():
                    yield tx_repo
                    committing = True
            else:
                if not session.in_transaction():
                    session.begin()
                yield tx_repo
                committing = True
                session.commit()
        except BaseException as exc:
            if not nested:
                session.rollback()
            self._log_rollback(exc, nested, committing)
            raise
        finally:
            session.info[TRANSACTION_DEPTH_KEY] = depth

        logger.debug(
            "repo.transaction.committed",
            extra={
                "model": self.model.__name__,
                "outcome": TransactionOutcome.COMMITTED.value,
                "nested": nested,
            },
        )

    def _log_rollback(self, exc: BaseException, nested: bool, committing: bool) -> None:
        kind = classify_error(exc)
        fields = {
            "model": self.model.__name__,
            "outcome": TransactionOutcome.ROLLED_BACK.value,
            "error_kind": kind.value,
            "nested": nested,
        }
        if committing:
            logger.error("repo.transaction.commit_failed", exc_info=True, extra=fields)
        elif kind == ErrorKind.ABNORMAL_TERMINATION:
            logger.error("repo.transaction.aborted", exc_info=True, extra=fields)
        else:
            logger.warning("repo.transaction.rolled_back", extra={**fields, "error": str(exc)})

    def with_transaction(self, tx_func: Callable[["MainRepository[ModelT]"], Any]) -> Any:
        """
        Run tx_func inside a transaction and return its result.

        tx_func receives a new repository bound to the transactional session.
        If it raises, the transaction is rolled back and the exception
        propagates unchanged; otherwise the transaction is committed.

        Example:
            def move_stock(tx_repo):
                source = tx_repo.find_by_id(1)
                source.quantity -= 5
                return tx_repo.update(source, source.id)

            repo.with_transaction(move_stock)
        """
        with self.transaction() as tx_repo:
            return tx_func(tx_repo)
