"""
User roles enumeration.

Defines the role types held in the Directory Store.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.
    
    Roles:
        USER: Default role for every signed-in customer
        RIDER: Granted only when a rider application is approved
        ADMIN: Granted only by another admin through the Role Manager
    """
    USER = "user"
    RIDER = "rider"
    ADMIN = "admin"


# Roles an admin may assign directly; rider elevation goes through approval
ASSIGNABLE_ROLES = frozenset({UserRole.ADMIN, UserRole.USER})
