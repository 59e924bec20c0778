"""
models/company.py
-----------------
Company (tenant) ORM model.

Each company is an isolated tenant. Its registration number doubles as the
namespace prefix of its objects in storage, so it is unique and never
mutated after registration.

Ids are never reused (AUTOINCREMENT on SQLite): a stale id from an old
admin page answers 404 instead of reaching a newer company.

The password_hash column stores bcrypt hashes only; plain text is never
stored and never logged.
"""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docportal.db.base import Base, TimestampMixin


class Company(Base, TimestampMixin):
    __tablename__ = "companies"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    registration_number: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False, index=True
    )
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    login_id: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    files: Mapped[list["File"]] = relationship(  # noqa: F821
        "File",
        back_populates="company",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def namespace(self) -> str:
        """Storage-key prefix under which this company's objects live."""
        return self.registration_number

    def __repr__(self) -> str:
        return f"<Company id={self.id} registration_number={self.registration_number}>"
