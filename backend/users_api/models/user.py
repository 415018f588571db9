"""
Users API: User SQLAlchemy Model
=================================

What:  ORM model for the `users` table.
How:   Inherits from the shared DeclarativeBase; ensure_schema() creates it.

Table:
    users(id serial primary key, name text, email text)

    - id: Integer primary key; PostgreSQL renders it as SERIAL, SQLite as a
      rowid alias. Always assigned by the database.
    - name / email: TEXT, nullable. Presence is only enforced on create, by
      the service layer; updates may overwrite them with NULL.
"""

from typing import Optional

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from users_api.database import Base


class User(Base):
    """A single user record."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name={self.name!r}, email={self.email!r})>"
