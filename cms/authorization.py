"""
Role hierarchy: SUPERMANAGE > MANAGE > EDITOR > USER.

Route handlers use ``check_permission`` to gate mutations; the query
engine itself never consults roles.
"""
from cms.enums import UserType

ROLE_LEVELS: dict[UserType, int] = {
    UserType.SUPERMANAGE: 4,
    UserType.MANAGE: 3,
    UserType.EDITOR: 2,
    UserType.USER: 1,
}


def role_level(role: UserType) -> int:
    return ROLE_LEVELS[role]


def check_permission(role: UserType, required: UserType) -> bool:
    """True when *role* is at least as privileged as *required*."""
    return ROLE_LEVELS[role] >= ROLE_LEVELS[required]


def compare_roles(a: UserType, b: UserType) -> int:
    """1 if *a* outranks *b*, -1 if *b* outranks *a*, 0 if equal."""
    level_a, level_b = ROLE_LEVELS[a], ROLE_LEVELS[b]
    return (level_a > level_b) - (level_a < level_b)
