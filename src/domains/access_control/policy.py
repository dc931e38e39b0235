# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access decisions for exams, questions, assignments and submissions.

Every entry point that reads or mutates one of these resources asks
this module first, so the same rules apply everywhere. The functions
are pure: they look only at their arguments and never touch storage.

Read rules, first match wins:
    1. A different tenant is a hard deny, except for sys_admin.
    2. sys_admin, or school_admin of the resource's tenant: allow.
    3. The resource's creator: allow.
    4. Exam: any teacher of the same tenant may read it.
    5. Question: a public question may be read within its tenant.
    6. Assignment: teachers and students of its class may read it.
    7. Submission: its student, or a teacher of the class, may read it.
    8. Otherwise deny.

Mutation uses rules 1 to 3 only. Rules 4 to 7 grant visibility, never
write access.
"""

from enum import Enum
from typing import Any, Mapping, Optional

from src.models.common import ClassRole, UserRole


class ResourceType(str, Enum):
    """Kinds of resources the evaluator knows about."""

    EXAM = "exam"
    QUESTION = "question"
    ASSIGNMENT = "assignment"
    SUBMISSION = "submission"


class AccessDeniedError(Exception):
    """The actor lacks the capability for this operation."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)
        self.message = message


def _field(resource: Any, name: str) -> Any:
    if isinstance(resource, Mapping):
        return resource.get(name)
    return getattr(resource, name, None)


def _same_tenant(resource: Any, actor: Any) -> bool:
    return _field(resource, "tenant_id") == actor.tenant_id


def _admin_or_owner(resource: Any, actor: Any) -> Optional[bool]:
    """Shared rules 1 to 3; None means "no decision yet"."""
    if actor.role == UserRole.SYS_ADMIN.value:
        return True
    if not _same_tenant(resource, actor):
        return False
    if actor.role == UserRole.SCHOOL_ADMIN.value:
        return True
    if _field(resource, "created_by") == actor.id:
        return True
    return None


def can_access(
    resource_type: ResourceType,
    resource: Any,
    actor: Any,
    class_role: Optional[str] = None,
) -> bool:
    """Decide whether actor may read resource.

    Args:
        resource_type: Kind of resource.
        resource: The loaded resource (an ORM row or any object with
            tenant_id, created_by and the type-specific attributes, or a
            mapping with the same keys).
        actor: Authenticated actor with id, role and tenant_id.
        class_role: The actor's role in the class the resource belongs
            to, for assignments and submissions; None when not a member.

    Returns:
        True if access is allowed.
    """
    decision = _admin_or_owner(resource, actor)
    if decision is not None:
        return decision

    if resource_type == ResourceType.EXAM:
        return actor.role == UserRole.TEACHER.value

    if resource_type == ResourceType.QUESTION:
        return bool(_field(resource, "is_public"))

    if resource_type == ResourceType.ASSIGNMENT:
        return class_role in (ClassRole.TEACHER.value, ClassRole.STUDENT.value)

    if resource_type == ResourceType.SUBMISSION:
        if _field(resource, "student_id") == actor.id:
            return True
        return class_role == ClassRole.TEACHER.value

    return False


def can_mutate(resource: Any, actor: Any) -> bool:
    """Decide whether actor may update or delete resource (admin or owner)."""
    return bool(_admin_or_owner(resource, actor))


def can_grade(assignment: Any, actor: Any, class_role: Optional[str] = None) -> bool:
    """Decide whether actor may grade submissions of assignment.

    Allowed for admins, the assignment's creator and teachers of its class.
    """
    if can_mutate(assignment, actor):
        return True
    return _same_tenant(assignment, actor) and class_role == ClassRole.TEACHER.value


def ensure_access(
    resource_type: ResourceType,
    resource: Any,
    actor: Any,
    class_role: Optional[str] = None,
) -> None:
    """Raise AccessDeniedError unless can_access allows the read."""
    if not can_access(resource_type, resource, actor, class_role):
        raise AccessDeniedError(f"You do not have permission to view this {resource_type.value}")


def ensure_mutation(resource_type: ResourceType, resource: Any, actor: Any) -> None:
    """Raise AccessDeniedError unless the actor is an admin or the owner."""
    if not can_mutate(resource, actor):
        raise AccessDeniedError(
            f"Only the creator or an administrator can modify this {resource_type.value}"
        )


def is_admin(actor: Any) -> bool:
    return actor.role in (UserRole.SYS_ADMIN.value, UserRole.SCHOOL_ADMIN.value)


def actor_tenant(actor: Any) -> str:
    """Tenant new content is created in.

    Raises:
        AccessDeniedError: If the actor is not acting inside a school.
    """
    if not actor.tenant_id:
        raise AccessDeniedError("This operation requires a school context")
    return actor.tenant_id
