from typing import Iterable

from linkportal.schemas.assignment import AssignmentDetail, LinkUsersGroup, UserLinksGroup
from linkportal.schemas.link import CategoryGroups, LinkOut
from linkportal.schemas.stats import PortalStatsOut
from linkportal.schemas.user import UserOut


def group_by_category(links: Iterable[LinkOut]) -> CategoryGroups:
    """Partition links into buckets keyed by category in a single pass.

    Categories keep the order in which they were first seen; callers that
    want alphabetical order sort the keys themselves.
    """
    groups: CategoryGroups = {}
    for link in links:
        groups.setdefault(link.category, []).append(link)
    return groups


def group_assignments_by_user(assignments: Iterable[AssignmentDetail]) -> list[UserLinksGroup]:
    groups: dict[str, UserLinksGroup] = {}
    for assignment in assignments:
        entry = groups.get(assignment.user_id)
        if entry is None:
            entry = groups[assignment.user_id] = UserLinksGroup(user=assignment.user, links=[])
        if assignment.link is not None:
            entry.links.append(assignment.link)
    return list(groups.values())


def group_assignments_by_link(assignments: Iterable[AssignmentDetail]) -> list[LinkUsersGroup]:
    groups: dict[str, LinkUsersGroup] = {}
    for assignment in assignments:
        entry = groups.get(assignment.link_id)
        if entry is None:
            entry = groups[assignment.link_id] = LinkUsersGroup(link=assignment.link, users=[])
        if assignment.user is not None:
            entry.users.append(assignment.user)
    return list(groups.values())


def portal_stats(
    links: list[LinkOut],
    users: list[UserOut],
    assignments: list[AssignmentDetail],
) -> PortalStatsOut:
    links_per_category: dict[str, int] = {}
    for link in links:
        links_per_category[link.category] = links_per_category.get(link.category, 0) + 1

    regular_users = [user for user in users if user.role == "user"]
    average = len(assignments) / len(regular_users) if regular_users else 0.0

    return PortalStatsOut(
        total_links=len(links),
        total_users=len(users),
        regular_users=len(regular_users),
        total_categories=len(links_per_category),
        total_assignments=len(assignments),
        users_with_assignments=len({item.user_id for item in assignments}),
        links_with_assignments=len({item.link_id for item in assignments}),
        avg_assignments_per_user=round(average, 1),
        links_per_category=links_per_category,
    )
