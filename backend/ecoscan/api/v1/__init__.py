"""
API v1 Module
Contains all version 1 API endpoints.
"""

# Expose routers for easy import
from ecoscan.api.v1 import dashboard, products, profiles, rewards, scans

__all__ = ["dashboard", "products", "profiles", "rewards", "scans"]
