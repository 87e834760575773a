"""
Declarative base.

All ORM models inherit from ``Base`` so that a single metadata object
describes the whole schema.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""

    pass
