"""
Group Roles and Permissions Configuration
This config defines the fixed three-tier role matrix used inside every group.
Predicates in huddle.core.permissions read from these tables; nothing here
is stored in the database.
"""

# Roles, highest first
ROLES = ["owner", "admin", "member"]

# Display/sort order for member listings
ROLE_ORDER = {
    "owner": 1,
    "admin": 2,
    "member": 3,
}

# Actions each role may perform on group-scoped resources
ROLE_ACTIONS = {
    "owner": {
        "actions": [
            "events:create", "events:manage",
            "announcements:create", "announcements:manage",
            "groups:update", "groups:delete", "groups:manage_images",
            "members:manage",
        ],
        "description": "Group creator; exactly one per group, cannot be changed or removed"
    },
    "admin": {
        "actions": [
            "events:create", "events:manage",
            "announcements:create", "announcements:manage",
            "groups:update", "groups:manage_images",
            "members:manage",
        ],
        "description": "Appointed by the owner; manages events, announcements and members"
    },
    "member": {
        "actions": [],
        "description": "Joined through an invite code; responds to events"
    },
}

# Roles an actor may assign to someone else. The owner role is never assignable
# and never changeable.
ASSIGNABLE_ROLES = {
    "owner": ["admin", "member"],
    "admin": ["member"],
    "member": [],
}

# Roles that can never be the target of a role change or removal
PROTECTED_ROLES = ["owner"]


def get_permission_matrix():
    """
    Returns the role matrix in a serializable form (used by /auth/me and docs)
    Format: {
        "roles": [
            {"name": "owner", "description": "...", "actions": [...], "can_assign": [...]},
            ...
        ]
    }
    """
    roles = []
    for role in ROLES:
        config = ROLE_ACTIONS[role]
        roles.append({
            "name": role,
            "description": config["description"],
            "actions": sorted(config["actions"]),
            "can_assign": ASSIGNABLE_ROLES[role],
        })
    return {"roles": roles}


PERMISSION_MATRIX = get_permission_matrix()
