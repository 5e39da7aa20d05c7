"""
Fact Store Adapter
Reads and upserts daily fact rows for both ad sources.

Reads are paged transparently: ``iter_rows`` keeps requesting pages until a
short page comes back, so no caller ever sees a silently truncated result.
"""
import logging
from datetime import date
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.models.client import Client
from app.models.enums import AdSource
from app.models.fact import MetaAdDaily, NaverKeywordDaily
from app.services.analytics.facts import FactRow, coerce_fact_row

logger = logging.getLogger(__name__)


class FactStoreError(Exception):
    """The fact store could not be read or written."""


# Table and conflict target per source
FACT_TABLES = {
    AdSource.PAID_SOCIAL: MetaAdDaily,
    AdSource.LOCAL_SEARCH: NaverKeywordDaily,
}

CONFLICT_COLUMNS = {
    AdSource.PAID_SOCIAL: ("client_id", "date", "ad_id", "platform", "device"),
    AdSource.LOCAL_SEARCH: ("client_id", "date", "keyword"),
}


def fact_to_record(row: FactRow) -> Dict[str, Any]:
    """Column values for one fact row"""
    record: Dict[str, Any] = {
        "client_id": row.client_id,
        "date": row.date,
        "impressions": row.impressions,
        "clicks": row.clicks,
    }
    if row.source == AdSource.LOCAL_SEARCH:
        record.update(
            keyword=row.keyword,
            total_cost=row.spend,
            avg_rank=row.avg_rank,
        )
    else:
        record.update(
            ad_id=row.ad_id,
            ad_name=row.ad_name,
            campaign_id=row.campaign_id,
            campaign_name=row.campaign_name,
            platform=row.platform,
            device=row.device,
            spend=row.spend,
            leads=row.leads,
            video_views=row.video_views,
            avg_watch_time=row.avg_watch_time,
            currency="USD",
        )
    return record


def dedupe(rows: Iterable[FactRow]) -> Dict[AdSource, List[FactRow]]:
    """Group rows by source, keeping the last row per natural key"""
    grouped: Dict[AdSource, Dict[Tuple, FactRow]] = {}
    for row in rows:
        grouped.setdefault(row.source, {})[row.natural_key] = row
    return {source: list(by_key.values()) for source, by_key in grouped.items()}


class FactStore:
    """
    Base adapter. Subclasses implement ``fetch_page`` and the write/lookup
    methods; pagination and collection are shared.
    """

    def __init__(self, page_size: Optional[int] = None, batch_size: Optional[int] = None):
        self.page_size = page_size or settings.FACT_STORE_PAGE_SIZE
        self.batch_size = batch_size or settings.UPSERT_BATCH_SIZE

    async def fetch_page(
        self,
        client_id: str,
        source: AdSource,
        date_from: Optional[date],
        date_to: Optional[date],
        keyword: Optional[str],
        offset: int,
        limit: int,
    ) -> List[FactRow]:
        raise NotImplementedError

    async def iter_rows(
        self,
        client_id: str,
        source: AdSource,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        keyword: Optional[str] = None,
    ) -> AsyncIterator[FactRow]:
        """Yield every matching row, page by page (date range is inclusive)"""
        offset = 0
        while True:
            page = await self.fetch_page(
                client_id, source, date_from, date_to, keyword, offset, self.page_size
            )
            for row in page:
                yield row
            if len(page) < self.page_size:
                break
            offset += self.page_size

    async def query(
        self,
        client_id: str,
        source: AdSource,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        keyword: Optional[str] = None,
    ) -> List[FactRow]:
        rows = [row async for row in self.iter_rows(client_id, source, date_from, date_to, keyword)]
        logger.debug(f"Fetched {len(rows)} {source.value} rows for client {client_id}")
        return rows

    async def upsert(self, rows: Iterable[FactRow]) -> int:
        """Insert or replace rows on their natural key; returns rows written"""
        written = 0
        for source, source_rows in dedupe(rows).items():
            for i in range(0, len(source_rows), self.batch_size):
                batch = source_rows[i:i + self.batch_size]
                await self.write_batch(source, batch)
                written += len(batch)
        return written

    async def write_batch(self, source: AdSource, rows: List[FactRow]) -> None:
        raise NotImplementedError

    async def get_client_id_by_slug(self, slug: str) -> Optional[str]:
        raise NotImplementedError

    async def get_active_clients(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def ping(self) -> None:
        """Raise FactStoreError if the store is unreachable"""


class SqlFactStore(FactStore):
    """Fact store backed by the SQLAlchemy async engine (PostgreSQL or SQLite)."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        page_size: Optional[int] = None,
        batch_size: Optional[int] = None,
    ):
        super().__init__(page_size=page_size, batch_size=batch_size)
        if session_factory is None:
            from app.core.database import AsyncSessionLocal
            session_factory = AsyncSessionLocal
        self.session_factory = session_factory

    async def fetch_page(self, client_id, source, date_from, date_to, keyword, offset, limit):
        model = FACT_TABLES[source]
        stmt = select(model).where(model.client_id == client_id)
        if date_from:
            stmt = stmt.where(model.date >= date_from)
        if date_to:
            stmt = stmt.where(model.date <= date_to)
        if keyword is not None and source == AdSource.LOCAL_SEARCH:
            stmt = stmt.where(model.keyword == keyword)
        stmt = stmt.order_by(model.date, model.id).offset(offset).limit(limit)

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                records = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Fact query failed ({source.value}, client={client_id}): {e}")
            raise FactStoreError(str(e)) from e

        return [self._to_fact(record, source) for record in records]

    @staticmethod
    def _to_fact(record: Any, source: AdSource) -> FactRow:
        return coerce_fact_row(record.to_dict(), source)

    @staticmethod
    def _insert_for(session: AsyncSession):
        dialect = session.bind.dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise FactStoreError(f"Upsert is not supported for dialect {dialect}")

    async def write_batch(self, source: AdSource, rows: List[FactRow]) -> None:
        model = FACT_TABLES[source]
        conflict = CONFLICT_COLUMNS[source]
        records = [fact_to_record(row) for row in rows]

        try:
            async with self.session_factory() as session:
                insert = self._insert_for(session)
                stmt = insert(model).values(records)
                update_columns = {
                    name: stmt.excluded[name]
                    for name in records[0]
                    if name not in conflict
                }
                update_columns["updated_at"] = func.now()
                stmt = stmt.on_conflict_do_update(index_elements=list(conflict), set_=update_columns)
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Upsert of {len(rows)} {source.value} rows failed: {e}")
            raise FactStoreError(str(e)) from e

        logger.info(f"Upserted {len(rows)} {source.value} rows")

    async def get_client_id_by_slug(self, slug: str) -> Optional[str]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(Client.id).where(Client.slug == slug))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Client lookup failed for slug {slug}: {e}")
            raise FactStoreError(str(e)) from e

    async def get_active_clients(self) -> List[Dict[str, Any]]:
        stmt = select(Client).where(Client.is_active.is_(True)).order_by(Client.client_name)
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                clients = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Active client query failed: {e}")
            raise FactStoreError(str(e)) from e

        return [
            {
                "id": c.id,
                "slug": c.slug,
                "client_name": c.client_name,
                "meta_ad_account_id": c.meta_ad_account_id,
            }
            for c in clients
        ]

    async def ping(self) -> None:
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise FactStoreError(str(e)) from e


class InMemoryFactStore(FactStore):
    """Dict-backed store with the same paging and upsert semantics (tests, local runs)."""

    def __init__(self, page_size: Optional[int] = None, batch_size: Optional[int] = None):
        super().__init__(page_size=page_size, batch_size=batch_size)
        self._rows: Dict[AdSource, Dict[Tuple, FactRow]] = {source: {} for source in AdSource}
        self._clients: Dict[str, Dict[str, Any]] = {}

    def add_client(
        self,
        client_id: str,
        slug: str,
        client_name: Optional[str] = None,
        meta_ad_account_id: Optional[str] = None,
        is_active: bool = True,
    ) -> None:
        self._clients[client_id] = {
            "id": client_id,
            "slug": slug,
            "client_name": client_name or slug,
            "meta_ad_account_id": meta_ad_account_id,
            "is_active": is_active,
        }

    async def fetch_page(self, client_id, source, date_from, date_to, keyword, offset, limit):
        matching = [
            row for row in self._rows[source].values()
            if row.client_id == client_id
            and (date_from is None or row.date >= date_from)
            and (date_to is None or row.date <= date_to)
            and (keyword is None or source != AdSource.LOCAL_SEARCH or row.keyword == keyword)
        ]
        # Stable sort keeps insertion order within a date (mirrors ORDER BY date, id)
        matching.sort(key=lambda row: row.date)
        return matching[offset:offset + limit]

    async def write_batch(self, source: AdSource, rows: List[FactRow]) -> None:
        table = self._rows[source]
        for row in rows:
            table[row.natural_key] = row

    async def get_client_id_by_slug(self, slug: str) -> Optional[str]:
        for client in self._clients.values():
            if client["slug"] == slug:
                return client["id"]
        return None

    async def get_active_clients(self) -> List[Dict[str, Any]]:
        active = [c for c in self._clients.values() if c["is_active"]]
        return [
            {key: c[key] for key in ("id", "slug", "client_name", "meta_ad_account_id")}
            for c in sorted(active, key=lambda c: c["client_name"])
        ]
