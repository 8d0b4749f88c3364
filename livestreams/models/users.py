import uuid
from datetime import datetime, timezone
from typing import List, Optional

import sqlalchemy.dialects.postgresql as pg
from sqlmodel import Column, Field, Relationship, SQLModel

from livestreams.models.streams import Stream


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserBase(SQLModel):
    name: Optional[str] = Field(default=None, max_length=100, nullable=True)
    email: str = Field(max_length=320, index=True, nullable=False, unique=True)
    image: Optional[str] = Field(default=None, max_length=2048, nullable=True)


class User(UserBase, table=True):
    __tablename__ = "users"

    id: Optional[uuid.UUID] = Field(
        default_factory=uuid.uuid4, primary_key=True, nullable=False
    )

    # None for accounts that only ever signed in with Google
    password_hash: Optional[str] = Field(default=None, exclude=True)

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
        ),
        default_factory=utc_now,
    )

    streams: List["Stream"] = Relationship(back_populates="user")
