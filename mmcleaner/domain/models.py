from __future__ import annotations

from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Mirrors the subset of the Mattermost schema this tool reads and deletes.
# The schema is owned by Mattermost; no migrations are shipped here.
class Base(DeclarativeBase):
    pass


class FileInfo(Base):
    __tablename__ = "fileinfo"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    path: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnailpath: Mapped[str | None] = mapped_column(Text, nullable=True)
    previewpath: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Epoch milliseconds, as written by the Mattermost server.
    createat: Mapped[int] = mapped_column(BigInteger, index=True)


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    createat: Mapped[int] = mapped_column(BigInteger, index=True)
