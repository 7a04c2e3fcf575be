from . import (
    accounts,
    alternate_saturdays,
    auth,
    blogs,
    breaks,
    clients,
    departments,
    events,
    holidays,
    leaves,
    projects,
    reports,
    saturdays,
    statistics,
    teams,
    tickets,
    todos,
    users,
)

__all__ = [
    "accounts",
    "alternate_saturdays",
    "auth",
    "blogs",
    "breaks",
    "clients",
    "departments",
    "events",
    "holidays",
    "leaves",
    "projects",
    "reports",
    "saturdays",
    "statistics",
    "teams",
    "tickets",
    "todos",
    "users",
]
