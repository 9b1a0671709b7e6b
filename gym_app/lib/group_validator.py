"""
Group contiguity rule shared by workout sessions and routine templates.

Within a scope (a person's day, or a routine) the distinct group numbers must
always form the range 1..max with no gaps. A mutation is checked before it is
applied, against the union of the groups already persisted in the scope and
the groups it is about to introduce.

All functions here are pure: callers pass explicit sets and get a result.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .errors import ValidationError

MIN_GROUP_NUMBER = 1
MAX_GROUP_NUMBER = 5


@dataclass(frozen=True)
class GroupValidation:
    """Result of a group check; falsy when rejected."""

    valid: bool
    message: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


ACCEPTED = GroupValidation(True)


def check_group_range(group_number: int) -> GroupValidation:
    if not MIN_GROUP_NUMBER <= group_number <= MAX_GROUP_NUMBER:
        return GroupValidation(
            False,
            f"group number must be between {MIN_GROUP_NUMBER} and {MAX_GROUP_NUMBER}, got {group_number}"
        )
    return ACCEPTED


def validate_groups(existing_groups: Iterable[int], proposed_groups: Iterable[int]) -> GroupValidation:
    """
    Check a batch of proposed group numbers against a scope.

    The batch is judged as a whole: its groups are unioned with the existing
    ones in one step, so a batch of {1, 2} is valid for an empty scope even
    though 2 alone is not.

    Args:
        existing_groups: Group numbers currently persisted in the scope
        proposed_groups: Group numbers being inserted or changed

    Returns:
        GroupValidation, with a message when rejected
    """
    proposed = set(proposed_groups)
    if not proposed:
        return ACCEPTED

    for group_number in sorted(proposed):
        in_range = check_group_range(group_number)
        if not in_range:
            return in_range

    groups = set(existing_groups) | proposed
    lowest, highest = min(groups), max(groups)

    if lowest != MIN_GROUP_NUMBER:
        return GroupValidation(False, "first exercise must be in group 1")

    for group_number in range(lowest, highest + 1):
        if group_number not in groups:
            return GroupValidation(False, f"cannot skip groups; add group {group_number} first")

    return ACCEPTED


def validate_group(existing_groups: Iterable[int], proposed_group: int) -> GroupValidation:
    """Check a single proposed group number against a scope."""
    return validate_groups(existing_groups, [proposed_group])


def ensure_valid_groups(existing_groups: Iterable[int], proposed_groups: Iterable[int]) -> None:
    """
    Raise ValidationError unless validate_groups() accepts.

    Raises:
        ValidationError: With the rejection message
    """
    result = validate_groups(existing_groups, proposed_groups)
    if not result:
        raise ValidationError(result.message)


def ensure_valid_group(existing_groups: Iterable[int], proposed_group: int) -> None:
    ensure_valid_groups(existing_groups, [proposed_group])
