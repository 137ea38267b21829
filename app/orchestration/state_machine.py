"""Deal status transition rules."""

from __future__ import annotations

from typing import Any

from app.models.enums import UserRole
from app.orchestration.rejections import (
    BackwardTransitionRejected,
    MissingRequiredField,
    RoleNotPermitted,
    WorkflowRejection,
)
from app.orchestration.status_catalog import CATALOG, StatusCatalog


class TransitionValidator:
    """Decides whether a deal may move to a target status.

    Checks run in a fixed order: known status, direction, role, then the
    target's required fields against the merged candidate snapshot. The
    first failure wins.
    """

    def __init__(self, catalog: StatusCatalog | None = None) -> None:
        self.catalog = catalog or CATALOG

    def can_transition(
        self,
        current: Any,
        target: Any,
        actor: UserRole | str,
        *,
        updates: dict[str, Any] | None = None,
        confirm_backward: bool = False,
    ) -> WorkflowRejection | None:
        try:
            self.assert_transition(
                current,
                target,
                actor,
                updates=updates,
                confirm_backward=confirm_backward,
            )
        except WorkflowRejection as exc:
            return exc
        return None

    def assert_transition(
        self,
        current: Any,
        target: Any,
        actor: UserRole | str,
        *,
        updates: dict[str, Any] | None = None,
        confirm_backward: bool = False,
    ) -> None:
        role = UserRole(actor)
        from_status = self.catalog.normalize(current.status)
        to_status = self.catalog.normalize(target)
        if to_status == from_status:
            return

        from_index = self.catalog.index_of(from_status)
        to_index = self.catalog.index_of(to_status)
        if to_index < from_index:
            if role == UserRole.ADMIN and confirm_backward:
                return
            raise BackwardTransitionRejected(from_status.value, to_status.value)

        if role != UserRole.ADMIN:
            for definition in self.catalog.between(from_status, to_status):
                if definition.admin_only:
                    raise RoleNotPermitted(
                        role.value,
                        f"move a deal to '{definition.status.value}'",
                        target=definition.status.value,
                    )

        candidate = current.merged(updates) if updates else current
        for requirement in self.catalog.definition(to_status).requirements:
            if not requirement.is_met(candidate):
                raise MissingRequiredField(requirement.field, to_status.value, requirement.label)
