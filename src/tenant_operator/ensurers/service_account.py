"""Ensurer for the robot service accounts."""

from __future__ import annotations

from ..constants import COND_SERVICE_ACCOUNT, ROBOT_SERVICE_ACCOUNT, ROBOT_SETUP_SERVICE_ACCOUNT
from ..models import Tenant
from ..store import SERVICE_ACCOUNT
from ..utils.context import ReconcileContext
from ..utils.errors import StoreError, sanitize_exception
from .base import WRITE_ERRORS, BaseEnsurer, desired_from


class ServiceAccountEnsurer(BaseEnsurer):
    """Creates ``robot-service`` and ``robot-service-setup`` in the robot-config namespace."""

    name = "service_account"
    condition = COND_SERVICE_ACCOUNT

    def _ensure(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        namespace = tenant.robot_config_namespace
        for account in (ROBOT_SERVICE_ACCOUNT, ROBOT_SETUP_SERVICE_ACCOUNT):
            try:
                existing = self.get_or_none(SERVICE_ACCOUNT, account, namespace, ctx)
            except StoreError as e:
                raise self.fail(
                    tenant, "get service account", f"Get service account {account} failed: {sanitize_exception(e)}"
                ) from e

            desired = desired_from(existing, SERVICE_ACCOUNT, account, namespace)
            try:
                self.apply(tenant, SERVICE_ACCOUNT, existing, desired, ctx)
            except WRITE_ERRORS as e:
                raise self.fail(
                    tenant,
                    "update service account",
                    f"Updating service account {account} failed: {sanitize_exception(e)}",
                ) from e

        self.succeed(tenant, "Tenant service accounts created")
