"""Ensurer for the robot-setup configuration snapshot of a tenant."""

from __future__ import annotations

import copy

from ..builders.resources import robot_setup_data
from ..constants import COND_ROBOT_SETUP, LABEL_TENANT, ROBOT_CONFIG_CLOUD_NAMESPACE, ROBOT_SETUP_CONFIGMAP
from ..models import Tenant
from ..store import CONFIG_MAP
from ..utils.context import ReconcileContext
from ..utils.errors import StoreError, sanitize_exception
from .base import WRITE_ERRORS, BaseEnsurer, desired_from


class RobotSetupEnsurer(BaseEnsurer):
    """Clones the shared robot-setup config map into the tenant's robot-config namespace.

    Runs after the domain ensurer so the snapshot carries the resolved tenant
    domain. The default tenant's robot-config namespace holds the template
    itself, which only gets the tenant keys merged in.
    """

    name = "robot_setup"
    condition = COND_ROBOT_SETUP

    def _ensure(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        template_ref = f"{ROBOT_CONFIG_CLOUD_NAMESPACE}/{ROBOT_SETUP_CONFIGMAP}"
        ctx.check("get robot-setup template")
        try:
            template = self.store.get(
                CONFIG_MAP, ROBOT_SETUP_CONFIGMAP, ROBOT_CONFIG_CLOUD_NAMESPACE, timeout=ctx.remaining()
            )
        except StoreError as e:
            raise self.fail(
                tenant, f"get {template_ref} configmap", f"Get config map {template_ref} failed: {sanitize_exception(e)}"
            ) from e

        namespace = tenant.robot_config_namespace
        is_template = namespace == ROBOT_CONFIG_CLOUD_NAMESPACE
        target_ref = f"{namespace}/{ROBOT_SETUP_CONFIGMAP}"

        if is_template:
            existing = template
        else:
            try:
                existing = self.get_or_none(CONFIG_MAP, ROBOT_SETUP_CONFIGMAP, namespace, ctx)
            except StoreError as e:
                raise self.fail(
                    tenant,
                    f"get config map {ROBOT_SETUP_CONFIGMAP}",
                    f"Get config map {target_ref} failed: {sanitize_exception(e)}",
                ) from e

        desired = desired_from(existing, CONFIG_MAP, ROBOT_SETUP_CONFIGMAP, namespace)
        data = copy.deepcopy(template.get("data") or {})
        data.update(robot_setup_data(tenant.name, tenant.status.tenant_domain, tenant.main_namespace))
        desired["data"] = data
        if not is_template:
            labels = desired["metadata"].get("labels") or {}
            labels[LABEL_TENANT] = tenant.name
            desired["metadata"]["labels"] = labels
        try:
            self.apply(tenant, CONFIG_MAP, existing, desired, ctx, owned=not is_template)
        except WRITE_ERRORS as e:
            raise self.fail(
                tenant,
                f'update ConfigMap "{namespace}:{ROBOT_SETUP_CONFIGMAP}"',
                f"Update config map {target_ref} failed: {sanitize_exception(e)}",
            ) from e

        self.succeed(tenant, "Robot-setup config synchronized")
