from __future__ import annotations


from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import declarative_base


Base = declarative_base()


class ArchiveRequest(Base):
    __tablename__ = "archive_requests"

    request_id = Column(String(36), primary_key=True)
    source_url = Column(Text, nullable=False)
    kind = Column(String(32), nullable=False)
    status = Column(String(32), nullable=False)
    # NULL while pagination is still running
    total_discovered = Column(Integer, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    finalized_at = Column(DateTime(timezone=True), nullable=True)


class DiscoveredLink(Base):
    __tablename__ = "discovered_links"
    __table_args__ = (UniqueConstraint("request_id", "item_url", name="uq_discovered_links_request_url"),)

    link_id = Column(Integer, primary_key=True)
    request_id = Column(String(36), ForeignKey("archive_requests.request_id"), nullable=False, index=True)
    item_url = Column(Text, nullable=False)
    page_number = Column(Integer, nullable=True)
    discovered_at = Column(DateTime(timezone=True), server_default=func.now())


class ItemArtifact(Base):
    __tablename__ = "item_artifacts"
    __table_args__ = (UniqueConstraint("request_id", "item_url", name="uq_item_artifacts_request_url"),)

    artifact_id = Column(Integer, primary_key=True)
    request_id = Column(String(36), ForeignKey("archive_requests.request_id"), nullable=False, index=True)
    item_url = Column(Text, nullable=False)
    artifact_key = Column(Text, nullable=False)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
