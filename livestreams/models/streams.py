import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
import sqlalchemy.dialects.postgresql as pg
from sqlmodel import Column, Field, Relationship, SQLModel

from livestreams.enums.streams import Visibility

if TYPE_CHECKING:
    from livestreams.models.users import User


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StreamBase(SQLModel):
    title: str = Field(min_length=3, max_length=120, index=True, nullable=False)
    description: Optional[str] = Field(
        default=None,
        sa_column=Column(pg.TEXT, nullable=True),
    )
    slug: str = Field(max_length=160, unique=True, nullable=False, index=True)
    visibility: Visibility = Field(
        default=Visibility.PUBLIC,
        sa_column=Column(
            sa.Enum(
                Visibility,
                name="stream_visibility",
                native_enum=False,
                create_constraint=True,
                values_callable=lambda enum: [member.value for member in enum],
            ),
            nullable=False,
            index=True,
        ),
    )
    is_live: bool = Field(default=False, index=True)
    hls_url: Optional[str] = Field(default=None, max_length=2048, nullable=True)

    created_at: datetime = Field(
        sa_column=Column(pg.TIMESTAMP(timezone=True), nullable=False),
        default_factory=utc_now,
    )
    updated_at: datetime = Field(
        sa_column=Column(
            pg.TIMESTAMP(timezone=True),
            nullable=False,
            default=utc_now,
            onupdate=utc_now,
            index=True,
        ),
        default_factory=utc_now,
    )


class Stream(StreamBase, table=True):
    __tablename__ = "streams"

    id: Optional[uuid.UUID] = Field(
        default_factory=uuid.uuid4, primary_key=True, nullable=False
    )
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)

    user: Optional["User"] = Relationship(back_populates="streams")
