from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime

from sqlalchemy import Integer, Text, cast, delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ssolink.db.models import ObjectField
from ssolink.errors import StoreError
from ssolink.store.base import FieldValue


class SqlObjectStore:
    """ObjectStore on the ``object_fields`` table.

    Every call commits on its own; a failed call is rolled back and surfaces
    as ``StoreError`` without touching what earlier calls already committed.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _row(self, key: str, field: str) -> ObjectField | None:
        result = await self.session.execute(
            select(ObjectField)
            .where(ObjectField.key == key, ObjectField.field == field)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _upsert(self, key: str, field: str, value: FieldValue) -> None:
        row = await self._row(key, field)
        if row is None:
            self.session.add(ObjectField(key=key, field=field, value=str(value)))
            return
        row.value = str(value)
        row.updated_at = datetime.now(UTC)

    async def _fail(self, action: str, key: str, exc: SQLAlchemyError) -> StoreError:
        await self.session.rollback()
        return StoreError(f"could not {action} {key}: {exc}")

    async def get_object_field(self, key: str, field: str) -> str | None:
        try:
            row = await self._row(key, field)
        except SQLAlchemyError as exc:
            raise await self._fail("read", key, exc) from exc
        return None if row is None else row.value

    async def get_object(self, key: str) -> dict[str, str]:
        try:
            result = await self.session.execute(
                select(ObjectField)
                .where(ObjectField.key == key)
                .order_by(ObjectField.field)
                .execution_options(populate_existing=True)
            )
            rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise await self._fail("read", key, exc) from exc
        return {row.field: row.value for row in rows}

    async def set_object_field(self, key: str, field: str, value: FieldValue) -> None:
        try:
            await self._upsert(key, field, value)
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise await self._fail("write", key, exc) from exc

    async def set_object(self, key: str, values: Mapping[str, FieldValue]) -> None:
        try:
            for field, value in values.items():
                await self._upsert(key, field, value)
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise await self._fail("write", key, exc) from exc

    async def delete_object_field(self, key: str, field: str) -> None:
        try:
            await self.session.execute(
                delete(ObjectField).where(ObjectField.key == key, ObjectField.field == field)
            )
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise await self._fail("delete from", key, exc) from exc

    async def delete_object(self, key: str) -> None:
        try:
            await self.session.execute(delete(ObjectField).where(ObjectField.key == key))
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise await self._fail("delete", key, exc) from exc

    async def _increment_existing(self, key: str, field: str, by: int) -> str | None:
        result = await self.session.execute(
            update(ObjectField)
            .where(ObjectField.key == key, ObjectField.field == field)
            .values(
                value=cast(cast(ObjectField.value, Integer) + by, Text),
                updated_at=datetime.now(UTC),
            )
            .returning(ObjectField.value)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    async def increment_object_field(self, key: str, field: str, by: int = 1) -> int:
        """Add ``by`` in one UPDATE so concurrent sessions never share a value."""
        try:
            current = await self.session.scalar(
                select(ObjectField.value).where(
                    ObjectField.key == key, ObjectField.field == field
                )
            )
            if current is not None:
                try:
                    int(current)
                except ValueError as exc:
                    await self.session.rollback()
                    raise StoreError(f"{key}.{field} is not an integer") from exc

            value = await self._increment_existing(key, field, by)
            if value is None:
                try:
                    await self.session.execute(
                        insert(ObjectField).values(
                            key=key,
                            field=field,
                            value=str(by),
                            updated_at=datetime.now(UTC),
                        )
                    )
                    value = str(by)
                except IntegrityError:
                    # Another session created the counter first.
                    await self.session.rollback()
                    value = await self._increment_existing(key, field, by)
            if value is None:
                await self.session.rollback()
                raise StoreError(f"could not increment {key}.{field}")
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise await self._fail("increment", key, exc) from exc
        return int(value)
