"""Core models for the candidate schema.

``Candidate`` is the SQLAlchemy 2.x table model and never leaves the store
layer. ``CandidateRecord`` is the immutable value the rest of the service
passes around (validator, cache, upsert pipeline, API).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import datetime

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Column caps, shared with the validator.
EMAIL_MAX_LENGTH = 255
NAME_MAX_LENGTH = 255
PHONE_MAX_LENGTH = 255
BEST_TIME_TO_CALL_MAX_LENGTH = 11
LINKEDIN_MAX_LENGTH = 500
GITHUB_MAX_LENGTH = 1000
COMMENTS_MAX_LENGTH = 2000


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Candidate(Base):
    """Candidates table, keyed by id with a unique email."""
    __tablename__ = "candidates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(EMAIL_MAX_LENGTH), nullable=False)
    first_name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    last_name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(PHONE_MAX_LENGTH))
    best_time_to_call: Mapped[str | None] = mapped_column(String(BEST_TIME_TO_CALL_MAX_LENGTH))
    linkedin_profile: Mapped[str | None] = mapped_column(String(LINKEDIN_MAX_LENGTH))
    github_profile: Mapped[str | None] = mapped_column(String(GITHUB_MAX_LENGTH))
    comments: Mapped[str] = mapped_column(String(COMMENTS_MAX_LENGTH), nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_candidates_email", "email", unique=True),
    )


@dataclass(frozen=True)
class CandidateRecord:
    """A candidate as seen by the service.

    ``id`` is None until the store assigns one on first insert.

    Example:
        >>> CandidateRecord(
        ...     email="a@b.com",
        ...     first_name="John",
        ...     last_name="Doe",
        ...     comments="x",
        ... )
    """

    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    comments: str | None = None
    phone_number: str | None = None
    best_time_to_call: str | None = None
    linkedin_profile: str | None = None
    github_profile: str | None = None
    id: int | None = None

    @classmethod
    def from_row(cls, row: Candidate) -> CandidateRecord:
        """Copy a table row into a detached record."""
        return cls(**{f.name: getattr(row, f.name) for f in fields(cls)})

    def to_row(self) -> Candidate:
        """Build a new table row from this record (``id`` is left to the database)."""
        values = asdict(self)
        values.pop("id")
        return Candidate(**values)

    def mutable_values(self) -> dict[str, str | None]:
        """Every field an upsert overwrites, i.e. all but ``id`` and ``email``."""
        return {name: getattr(self, name) for name in MUTABLE_FIELDS}


MUTABLE_FIELDS: tuple[str, ...] = tuple(
    f.name for f in fields(CandidateRecord) if f.name not in ("id", "email")
)
