from datetime import datetime, timezone
from typing import List

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mixarchive.db.models import DiscoveredLink as DBDiscoveredLink, ItemArtifact as DBItemArtifact
from mixarchive.domain import ItemArtifact


class ArtifactsRepository:
    """Repository for per-item completion records.

    One row per (request, item URL). Recording the same item again overwrites
    the earlier row, so the completed count reflects presence, not events.
    """
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_session(self) -> Session:
        return self.session_factory()

    def _to_domain(self, row: DBItemArtifact) -> ItemArtifact:
        return ItemArtifact(
            request_id=row.request_id,
            item_url=row.item_url,
            artifact_key=row.artifact_key,
            error=row.error,
            created_at=row.created_at,
        )

    def _find(self, session: Session, request_id: str, item_url: str):
        q = select(DBItemArtifact).where(
            DBItemArtifact.request_id == request_id,
            DBItemArtifact.item_url == item_url,
        )
        return session.execute(q).scalars().first()

    def record_artifact(self, artifact: ItemArtifact) -> ItemArtifact:
        now = datetime.now(timezone.utc)
        with self.get_session() as session:
            row = self._find(session, artifact.request_id, artifact.item_url)
            if row is None:
                row = DBItemArtifact(
                    request_id=artifact.request_id,
                    item_url=artifact.item_url,
                    artifact_key=artifact.artifact_key,
                    error=artifact.error,
                    created_at=now,
                    updated_at=now,
                )
                session.add(row)
                try:
                    session.commit()
                except IntegrityError:
                    # A duplicate invocation inserted first; last write wins.
                    session.rollback()
                    row = self._find(session, artifact.request_id, artifact.item_url)
                    if row is None:
                        raise
                    row.artifact_key = artifact.artifact_key
                    row.error = artifact.error
                    row.updated_at = now
                    session.commit()
            else:
                row.artifact_key = artifact.artifact_key
                row.error = artifact.error
                row.updated_at = now
                session.commit()
            session.refresh(row)
            return self._to_domain(row)

    def count_completed(self, request_id: str) -> int:
        """Count artifact rows whose item URL belongs to the discovered set."""
        with self.get_session() as session:
            q = (
                select(func.count(DBItemArtifact.artifact_id))
                .select_from(DBItemArtifact)
                .join(
                    DBDiscoveredLink,
                    and_(
                        DBDiscoveredLink.request_id == DBItemArtifact.request_id,
                        DBDiscoveredLink.item_url == DBItemArtifact.item_url,
                    ),
                )
                .where(DBItemArtifact.request_id == request_id)
            )
            return int(session.execute(q).scalar_one())

    def list_for_request(self, request_id: str) -> List[ItemArtifact]:
        with self.get_session() as session:
            q = (
                select(DBItemArtifact)
                .where(DBItemArtifact.request_id == request_id)
                .order_by(DBItemArtifact.artifact_id)
            )
            return [self._to_domain(r) for r in session.execute(q).scalars().all()]
