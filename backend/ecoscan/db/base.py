"""
SQLAlchemy Declarative Base
Defines the base class for all SQLAlchemy models.

Constraint names follow a fixed convention so the unique barcode index
and the scan foreign keys get the same names on PostgreSQL and SQLite.
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import declarative_base

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Declarative base class for all models (Product, Profile, ScanEvent, ...)
Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))
