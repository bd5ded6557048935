"""Repository base classes shared by every table."""

from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.db.base import Base
from docspace.services.tenancy import require_organization_id

RowT = TypeVar("RowT", bound=Base)


class BaseRepository(Generic[RowT]):
    """Async CRUD over one mapped table. Subclasses set ``model``.

    Writes flush but never commit; the caller owns the unit of work.
    """

    model: ClassVar[type[Base]]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load(self, pk: str) -> RowT | None:
        return await self.session.get(self.model, pk)

    async def find(self, *criteria, order_by=None) -> list[RowT]:
        stmt = select(self.model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **fields: Any) -> RowT:
        row = self.model(**fields)
        self.session.add(row)
        await self.session.flush()
        return row

    async def update(self, row: RowT, **fields: Any) -> RowT:
        for name, value in fields.items():
            setattr(row, name, value)
        await self.session.flush()
        return row

    async def delete_row(self, row: RowT) -> None:
        await self.session.delete(row)
        await self.session.flush()


class OrgScopedRepository(BaseRepository[RowT]):
    """For tables carrying an ``organization_id`` column.

    ``scoped`` adds the tenant filter to a select, update or delete; an empty
    organization id raises instead of running the statement unscoped.
    """

    def scoped(self, stmt, organization_id: str | None):
        org_id = require_organization_id(organization_id)
        return stmt.where(self.model.organization_id == org_id)

    async def get_in_org(self, pk: str, organization_id: str | None) -> RowT | None:
        pk_column = inspect(self.model).primary_key[0]
        stmt = self.scoped(select(self.model).where(pk_column == pk), organization_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
