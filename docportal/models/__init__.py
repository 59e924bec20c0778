"""
models/__init__.py
------------------
Re-export all models so metadata.create_all() sees every table via a
single import:

    from docportal.models import Base
"""

from docportal.db.base import Base
from docportal.models.company import Company
from docportal.models.file import File

__all__ = ["Base", "Company", "File"]
