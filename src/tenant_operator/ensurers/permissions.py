"""Ensurer for the role bindings of the robot service accounts."""

from __future__ import annotations

from ..builders.resources import role_binding_fields, role_binding_specs
from ..constants import COND_PERMISSIONS
from ..models import Tenant
from ..store import ROLE_BINDING
from ..utils.context import ReconcileContext
from ..utils.errors import StoreError, sanitize_exception
from .base import WRITE_ERRORS, BaseEnsurer, desired_from


class PermissionsEnsurer(BaseEnsurer):
    name = "permissions"
    condition = COND_PERMISSIONS

    def _ensure(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        robot_config_namespace = tenant.robot_config_namespace
        for spec in role_binding_specs(tenant.main_namespace, robot_config_namespace):
            binding = f"{spec['namespace']}/{spec['name']}"
            try:
                existing = self.get_or_none(ROLE_BINDING, spec["name"], spec["namespace"], ctx)
            except StoreError as e:
                raise self.fail(
                    tenant, f"get role binding {binding}", f"Get role binding failed: {sanitize_exception(e)}"
                ) from e

            desired = desired_from(existing, ROLE_BINDING, spec["name"], spec["namespace"])
            desired.update(role_binding_fields(spec["cluster_role"], spec["subject"], robot_config_namespace))
            try:
                self.apply(tenant, ROLE_BINDING, existing, desired, ctx)
            except WRITE_ERRORS as e:
                raise self.fail(
                    tenant, f"create role binding {binding}", f"Update role binding failed: {sanitize_exception(e)}"
                ) from e

        self.succeed(tenant, "Tenant permissions set")
