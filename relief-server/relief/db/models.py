"""SQLAlchemy ORM models."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from relief.infrastructure.database.base import Base


class OfflineBatch(Base):
    __tablename__ = "offline_batches"

    batch_id = Column(String(100), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "OfflineBatchItem",
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="OfflineBatchItem.position",
    )


class OfflineBatchItem(Base):
    __tablename__ = "offline_batch_items"
    __table_args__ = (UniqueConstraint("batch_id", "position", name="uq_offline_batch_items_position"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    batch_id = Column(
        String(100),
        ForeignKey("offline_batches.batch_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    envelope_xdr = Column(Text, nullable=False)
    threshold = Column(Text)  # JSON: {"required_weight": n, "signers": {key: weight}}
    status = Column(String(20), nullable=False, default="pending")  # pending, submitted, failed
    reason = Column(Text)
    updated_at = Column(DateTime(timezone=True))

    batch = relationship("OfflineBatch", back_populates="items")
