import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mixarchive.db.models import ArchiveRequest as DBArchiveRequest, DiscoveredLink as DBDiscoveredLink
from mixarchive.domain import CrawlRequest
from mixarchive.domain.crawl_request import STATUS_FAILED, STATUS_PAGINATED, STATUS_PAGINATING

logger = logging.getLogger(__name__)


class RequestsRepository:
    """Repository for archive requests and their discovered item links.

    The discovered set is the durable "total discovered" counter: one row per
    (request, item URL), guarded by a unique constraint, so re-adding a link is
    a no-op rather than a second increment.
    """
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_session(self) -> Session:
        return self.session_factory()

    def _count_discovered(self, session: Session, request_id: str) -> int:
        q = select(func.count(DBDiscoveredLink.link_id)).where(DBDiscoveredLink.request_id == request_id)
        return int(session.execute(q).scalar_one())

    def _to_domain(self, session: Session, row: DBArchiveRequest, include_links: bool = False) -> CrawlRequest:
        links = None
        if include_links:
            q = select(DBDiscoveredLink.item_url).where(DBDiscoveredLink.request_id == row.request_id)
            links = set(session.execute(q).scalars().all())
        return CrawlRequest(
            request_id=row.request_id,
            source_url=row.source_url,
            kind=row.kind,
            status=row.status,
            total_discovered=row.total_discovered,
            discovered_count=self._count_discovered(session, row.request_id),
            discovered_links=links,
            error=row.error,
            created_at=row.created_at,
            finalized_at=row.finalized_at,
        )

    def create_request(self, source_url: str, kind: str) -> CrawlRequest:
        request_id = str(uuid.uuid4())
        with self.get_session() as session:
            row = DBArchiveRequest(
                request_id=request_id,
                source_url=source_url,
                kind=kind,
                status=STATUS_PAGINATING,
                created_at=datetime.now(timezone.utc),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_domain(session, row)

    def get_request(self, request_id: str, include_links: bool = False) -> Optional[CrawlRequest]:
        with self.get_session() as session:
            q = select(DBArchiveRequest).where(DBArchiveRequest.request_id == request_id)
            row = session.execute(q).scalars().first()
            if not row:
                return None
            return self._to_domain(session, row, include_links=include_links)

    def add_discovered_links(self, request_id: str, item_urls: Iterable[str], page_number: Optional[int] = None) -> List[str]:
        """Add links to the request's discovered set.

        Returns the links that were not already present, in input order. Links
        already recorded (by an earlier or concurrent invocation) are skipped.
        """
        ordered = list(dict.fromkeys(item_urls))
        if not ordered:
            return []

        with self.get_session() as session:
            q = select(DBDiscoveredLink.item_url).where(
                DBDiscoveredLink.request_id == request_id,
                DBDiscoveredLink.item_url.in_(ordered),
            )
            existing = set(session.execute(q).scalars().all())
            missing = [u for u in ordered if u not in existing]
            if not missing:
                return []

            session.add_all([
                DBDiscoveredLink(request_id=request_id, item_url=u, page_number=page_number)
                for u in missing
            ])
            try:
                session.commit()
                return missing
            except IntegrityError:
                # Another invocation inserted some of the same links; fall back
                # to row-by-row inserts so each link is counted exactly once.
                session.rollback()

            added = []
            for u in missing:
                session.add(DBDiscoveredLink(request_id=request_id, item_url=u, page_number=page_number))
                try:
                    session.commit()
                    added.append(u)
                except IntegrityError:
                    session.rollback()
                    logger.debug("Link already discovered for %s: %s", request_id, u)
            return added

    def count_discovered(self, request_id: str) -> int:
        with self.get_session() as session:
            return self._count_discovered(session, request_id)

    def finalize_total(self, request_id: str, status: str = STATUS_PAGINATED, error: Optional[str] = None) -> Optional[int]:
        """Freeze `total_discovered` at the current size of the discovered set.

        Only the first call has an effect; later calls return the already
        final total. Returns None if the request does not exist.
        """
        count_q = (
            select(func.count(DBDiscoveredLink.link_id))
            .where(DBDiscoveredLink.request_id == request_id)
            .scalar_subquery()
        )
        with self.get_session() as session:
            stmt = (
                update(DBArchiveRequest)
                .where(DBArchiveRequest.request_id == request_id, DBArchiveRequest.total_discovered.is_(None))
                .values(
                    total_discovered=count_q,
                    status=status,
                    error=error,
                    finalized_at=datetime.now(timezone.utc),
                )
            )
            result = session.execute(stmt)
            session.commit()
            if result.rowcount:
                logger.info("Finalized request %s with status=%s", request_id, status)

            q = select(DBArchiveRequest.total_discovered).where(DBArchiveRequest.request_id == request_id)
            return session.execute(q).scalars().first()

    def mark_failed(self, request_id: str, error: str) -> bool:
        with self.get_session() as session:
            stmt = (
                update(DBArchiveRequest)
                .where(DBArchiveRequest.request_id == request_id)
                .values(status=STATUS_FAILED, error=error)
            )
            result = session.execute(stmt)
            session.commit()
            return bool(result.rowcount)
