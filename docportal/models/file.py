"""
models/file.py
--------------
Metadata for a document stored on behalf of a company.

One row per (company_id, name): a re-upload under the same display name
updates the row in place. storage_key always starts with the owning
company's namespace prefix.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docportal.db.base import Base, utcnow


class File(Base):
    __tablename__ = "files"
    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_files_company_name"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_key: Mapped[str] = mapped_column(String(600), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    company: Mapped["Company"] = relationship("Company", back_populates="files")  # noqa: F821

    def __repr__(self) -> str:
        return f"<File id={self.id} company_id={self.company_id} key={self.storage_key}>"
