from enum import Enum


class ProfileRole(str, Enum):
    admin = "admin"
    staff = "staff"
    cast = "cast"
    guest = "guest"


class RoleTarget(str, Enum):
    """Which class of profile a store role can be given to."""
    staff = "staff"
    cast = "cast"
