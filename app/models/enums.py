"""
Database Enums

Python Enums that map to PostgreSQL ENUM types.
"""

import enum


class UserType(str, enum.Enum):
    """Account type enumeration."""
    CUSTOMER = "customer"
    RESTAURANT_OWNER = "restaurant_owner"
    ADMIN = "admin"
