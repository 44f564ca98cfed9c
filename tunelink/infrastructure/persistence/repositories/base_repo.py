"""Shared building blocks for the SQLAlchemy repositories.

Repositories hand out frozen domain entities, never ORM rows. Each model
gets a mapper that converts rows to entities (and new entities to rows);
``BaseRepository`` adds the soft-delete aware queries every table needs.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar

from attrs import define
from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from tunelink.config import get_logger
from tunelink.infrastructure.persistence.database.db_models import (
    SoftDeleteMixin,
    TunelinkDBBase,
)
from tunelink.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

TDBModel = TypeVar("TDBModel", bound=TunelinkDBBase)
TDomainModel = TypeVar("TDomainModel")

logger = get_logger(__name__)


def filter_active(model_class: type[SoftDeleteMixin]) -> ColumnElement[bool]:
    """Rows that have not been soft-deleted."""
    return model_class.is_deleted == False  # noqa: E712


class ModelMapper[TDBModel: TunelinkDBBase, TDomainModel](Protocol):
    """Converts between one ORM model and its domain entity."""

    @staticmethod
    async def to_domain(db_model: TDBModel) -> TDomainModel: ...

    @staticmethod
    def to_db(domain_model: TDomainModel) -> TDBModel: ...

    @classmethod
    async def map_collection(
        cls,
        db_models: Sequence[TDBModel],
    ) -> list[TDomainModel]: ...


@define(frozen=True, slots=True)
class BaseModelMapper[TDBModel: TunelinkDBBase, TDomainModel]:
    """Mapper base class; subclasses provide ``to_domain`` and ``to_db``.

    Usage:
        @define(frozen=True, slots=True)
        class AccountMapper(BaseModelMapper[DBAccount, Account]):
            @staticmethod
            async def to_domain(db_model: DBAccount) -> Account:
                return Account(...)

            @staticmethod
            def to_db(domain_model: Account) -> DBAccount:
                return DBAccount(...)
    """

    @staticmethod
    async def to_domain(db_model: TDBModel) -> TDomainModel:
        raise NotImplementedError(f"{type(db_model).__name__} mapper lacks to_domain")

    @staticmethod
    def to_db(domain_model: TDomainModel) -> TDBModel:
        raise NotImplementedError(f"{type(domain_model).__name__} mapper lacks to_db")

    @classmethod
    async def map_collection(
        cls,
        db_models: Sequence[TDBModel],
    ) -> list[TDomainModel]:
        """Map rows in order, dispatching to the subclass's ``to_domain``."""
        return [await cls.to_domain(db_model) for db_model in db_models]


class BaseRepository[TDBModel: TunelinkDBBase, TDomainModel]:
    """Soft-delete aware CRUD shared by the entity repositories.

    Every query built here excludes soft-deleted rows. Subclasses add the
    table-specific queries and decorate their public methods with
    ``db_operation``.
    """

    def __init__(
        self,
        session: AsyncSession,
        model_class: type[TDBModel],
        mapper: ModelMapper[TDBModel, TDomainModel],
    ) -> None:
        self.session = session
        self.model_class = model_class
        self.mapper = mapper

    def select(self, *columns: Any) -> Select[Any]:
        """SELECT over live rows, of the whole model or the given columns."""
        stmt = select(*columns) if columns else select(self.model_class)
        return stmt.where(filter_active(self.model_class))

    def select_by_id(self, id_: int) -> Select[tuple[TDBModel]]:
        return self.select().where(self.model_class.id == id_)

    async def _execute_query(self, stmt: Select[tuple[TDBModel]]) -> list[TDBModel]:
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _execute_query_one(
        self, stmt: Select[tuple[TDBModel]]
    ) -> TDBModel | None:
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    @db_operation("find_by")
    async def find_by(
        self,
        conditions: Sequence[ColumnElement[bool]],
        limit: int | None = None,
        order_by: tuple[str, bool] | None = None,
    ) -> list[TDomainModel]:
        """Live rows matching every condition.

        ``order_by`` is ``(column_name, ascending)``.
        """
        stmt = self.select().where(*conditions)

        if order_by is not None:
            name, ascending = order_by
            column = getattr(self.model_class, name)
            stmt = stmt.order_by(column.asc() if ascending else column.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        return await self.mapper.map_collection(await self._execute_query(stmt))

    @db_operation("find_one_by_id")
    async def find_one_by_id(self, id_: int) -> TDomainModel | None:
        db_entity = await self._execute_query_one(self.select_by_id(id_))
        return None if db_entity is None else await self.mapper.to_domain(db_entity)

    @db_operation("create")
    async def create(self, entity: TDomainModel) -> TDomainModel:
        """Insert a new row and return the entity with its generated ID."""
        db_entity = self.mapper.to_db(entity)
        self.session.add(db_entity)
        await self.session.flush()
        await self.session.refresh(db_entity)
        logger.trace(f"Inserted {self.model_class.__name__} {db_entity.id}")
        return await self.mapper.to_domain(db_entity)

    @db_operation("soft_delete")
    async def soft_delete(self, id_: int) -> int:
        """Flag a live row deleted; returns 1 if it was live, else 0."""
        result = await self.session.execute(
            update(self.model_class)
            .where(self.model_class.id == id_, filter_active(self.model_class))
            .values(is_deleted=True, deleted_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
