# app/core/permissions.py
"""
Authorization predicates.

Every predicate is a pure function of the actor and the target record; none of
them touch the database. Routes combine them and raise ``Forbidden`` on failure.
"""

TEACHER = "teacher"
STUDENT = "student"


def is_teacher(actor) -> bool:
    return actor is not None and actor.role == TEACHER


def is_student(actor) -> bool:
    return actor is not None and actor.role == STUDENT


def owns_task(actor, task) -> bool:
    return actor is not None and task.creator_id == actor.id


def is_assigned_to_task(actor, task) -> bool:
    """
    True when the task targets the actor directly or targets the actor's branch.

    Team membership is not consulted: for ``assignment_type == "team"`` a
    student whose branch matches counts as assigned even before joining a team.
    """
    if actor is None:
        return False
    if task.assigned_to_id is not None and task.assigned_to_id == actor.id:
        return True
    return task.assigned_to_branch is not None and task.assigned_to_branch == actor.branch


def can_view_task_artifacts(actor, task) -> bool:
    """Teams, messages and message history are visible to assignees and the owner."""
    return is_assigned_to_task(actor, task) or owns_task(actor, task)
