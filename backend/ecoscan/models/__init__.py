"""
Database Models Module
Contains SQLAlchemy ORM models for all database tables.

All models must be imported here to be registered with SQLAlchemy
and created during Base.metadata.create_all().
"""

from ecoscan.db.base import Base
from ecoscan.models.base import BaseModel
from ecoscan.models.product import Product
from ecoscan.models.profile import Profile
from ecoscan.models.scan import ScanEvent
from ecoscan.models.challenge import Challenge
from ecoscan.models.reward import Reward
from ecoscan.models.error_log import ErrorLog

__all__ = [
    "Base",
    "BaseModel",
    "Product",
    "Profile",
    "ScanEvent",
    "Challenge",
    "Reward",
    "ErrorLog",
]
