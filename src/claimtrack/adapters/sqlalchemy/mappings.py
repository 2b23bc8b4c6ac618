"""SQLAlchemy mapping metadata for the claim domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import relationship

from claimtrack.domain.model import (
    ActorKind,
    Claim,
    ClaimIdentifier,
    ClaimVersion,
    Grading,
    MonetaryAmount,
    OperationKind,
)
from claimtrack.domain.model.primitives import IDENTIFIER_MAX_LENGTH

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class ClaimIdentifierType(TypeDecorator[ClaimIdentifier]):
    impl = String(IDENTIFIER_MAX_LENGTH)
    cache_ok = True

    def process_bind_param(self, value: ClaimIdentifier | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return value.value

    def process_result_value(self, value: str | None, dialect: Dialect) -> ClaimIdentifier | None:
        _ = dialect
        if value is None:
            return None
        return ClaimIdentifier(value)


class MoneyType(TypeDecorator[MonetaryAmount]):
    """Amounts are stored as integer cents."""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value: MonetaryAmount | None, dialect: Dialect) -> int | None:
        _ = dialect
        if value is None:
            return None
        return value.cents

    def process_result_value(self, value: int | None, dialect: Dialect) -> MonetaryAmount | None:
        _ = dialect
        if value is None:
            return None
        return MonetaryAmount.from_cents(value)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

claim_table = Table(
    "claim",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("tenant_id", String(64), nullable=False),
    Column("identifier", ClaimIdentifierType(), nullable=False),
    Column("first_seen_at", UTCDateTime(), nullable=False),
    Column("cost", MoneyType(), key="_cost", nullable=False),
    Column("grading", Enum(Grading, native_enum=False), key="_grading", nullable=False),
    Column("reason", Text, key="_reason", nullable=False),
    Column("updated_at", UTCDateTime(), key="_updated_at", nullable=False),
    UniqueConstraint("tenant_id", "identifier", name="uq_claim_identity"),
    Index("ix_claim_tenant_grading", "tenant_id", "_grading"),
)

claim_version_table = Table(
    "claim_version",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "claim_id",
        UUIDColumnType,
        ForeignKey("claim.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("sequence", Integer, nullable=False),
    Column("previous_cost", MoneyType(), nullable=True),
    Column("new_cost", MoneyType(), nullable=False),
    Column("previous_grading", Enum(Grading, native_enum=False), nullable=True),
    Column("new_grading", Enum(Grading, native_enum=False), nullable=False),
    Column("reason", Text, nullable=False),
    Column("operation", Enum(OperationKind, native_enum=False), nullable=False),
    Column("actor", Enum(ActorKind, native_enum=False), nullable=False),
    Column("batch_id", UUIDColumnType, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("claim_id", "sequence", name="uq_claim_version_sequence"),
)

# Run records are immutable value objects, persisted through Core statements.

batch_import_table = Table(
    "batch_import",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True),
    Column("tenant_id", String(64), nullable=False, index=True),
    Column("source", String, nullable=False),
    Column("total", Integer, nullable=False),
    Column("new", Integer, nullable=False),
    Column("updated", Integer, nullable=False),
    Column("unchanged", Integer, nullable=False),
    Column("errored", Integer, nullable=False),
    Column("approved", Integer, nullable=False),
    Column("pending", Integer, nullable=False),
    Column("rejected", Integer, nullable=False),
    Column("not_found", Integer, nullable=False),
    Column("baseline", Boolean, nullable=False),
    Column("actor", String, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
)

revalidation_cycle_table = Table(
    "revalidation_cycle",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True),
    Column("tenant_id", String(64), nullable=True, index=True),
    Column("processed", Integer, nullable=False),
    Column("newly_approved", Integer, nullable=False),
    Column("still_rejected", Integer, nullable=False),
    Column("still_not_found", Integer, nullable=False),
    Column("cost_changes", Integer, nullable=False),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("finished_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(ClaimVersion, claim_version_table)

    mapper_registry.map_imperatively(
        Claim,
        claim_table,
        properties={
            "_versions": relationship(
                ClaimVersion,
                order_by=claim_version_table.c.sequence,
                cascade="all, delete-orphan",
                lazy="selectin",
            ),
        },
    )

    orm.configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
