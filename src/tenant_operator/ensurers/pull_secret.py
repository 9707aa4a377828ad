"""Ensurer for the image pull secret of the tenant namespaces."""

from __future__ import annotations

import copy

from ..constants import COND_PULL_SECRET, DEFAULT_NAMESPACE, DEFAULT_SERVICE_ACCOUNT, IMAGE_PULL_SECRET
from ..models import Tenant
from ..store import SECRET, SERVICE_ACCOUNT
from ..utils.conditions import set_condition
from ..utils.context import ReconcileContext
from ..utils.errors import MissingServiceAccountError, NotFoundError, StoreError, sanitize_exception
from ..utils.naming import tenant_namespaces
from .base import WRITE_ERRORS, BaseEnsurer, desired_from


class PullSecretEnsurer(BaseEnsurer):
    """Copies the image pull secret from the ``default`` namespace.

    Service accounts cannot reference secrets in other namespaces, so every
    tenant namespace gets its own copy, referenced by its default service
    account.
    """

    name = "pull_secret"
    condition = COND_PULL_SECRET

    def _ensure(self, tenant: Tenant, ctx: ReconcileContext) -> None:
        template_ref = f'Secret "{DEFAULT_NAMESPACE}:{IMAGE_PULL_SECRET}"'
        ctx.check("get pull secret template")
        try:
            template = self.store.get(SECRET, IMAGE_PULL_SECRET, DEFAULT_NAMESPACE, timeout=ctx.remaining())
        except NotFoundError as e:
            raise self.fail(tenant, "get pull secret template", f"{template_ref} not found") from e
        except StoreError as e:
            raise self.fail(
                tenant, "get pull secret template", f"getting {template_ref} failed: {sanitize_exception(e)}"
            ) from e

        for namespace in tenant_namespaces(tenant.name):
            # The pull secret of the default namespace is the template itself
            if namespace == DEFAULT_NAMESPACE:
                continue
            self._ensure_secret(tenant, namespace, template, ctx)
            self._ensure_service_account_reference(tenant, namespace, ctx)

        self.succeed(tenant, "Tenant pull secret created")

    def _ensure_secret(self, tenant: Tenant, namespace: str, template: dict, ctx: ReconcileContext) -> None:
        try:
            existing = self.get_or_none(SECRET, IMAGE_PULL_SECRET, namespace, ctx)
        except StoreError as e:
            raise self.fail(
                tenant,
                f"get secret {IMAGE_PULL_SECRET}",
                f"Get secret {namespace}/{IMAGE_PULL_SECRET} failed: {sanitize_exception(e)}",
            ) from e

        desired = desired_from(existing, SECRET, IMAGE_PULL_SECRET, namespace)
        desired["data"] = copy.deepcopy(template.get("data") or {})
        if template.get("type"):
            desired["type"] = template["type"]
        try:
            self.apply(tenant, SECRET, existing, desired, ctx)
        except WRITE_ERRORS as e:
            raise self.fail(
                tenant,
                f'update Secret "{namespace}:{IMAGE_PULL_SECRET}"',
                f"Update secret {namespace}/{IMAGE_PULL_SECRET} failed: {sanitize_exception(e)}",
            ) from e

    def _ensure_service_account_reference(self, tenant: Tenant, namespace: str, ctx: ReconcileContext) -> None:
        account_ref = f'ServiceAccount "{namespace}:{DEFAULT_SERVICE_ACCOUNT}"'
        try:
            existing = self.get_or_none(SERVICE_ACCOUNT, DEFAULT_SERVICE_ACCOUNT, namespace, ctx)
        except StoreError as e:
            raise self.fail(
                tenant, f"get {account_ref}", f"Get {account_ref} failed: {sanitize_exception(e)}"
            ) from e
        if existing is None:
            # Created asynchronously by the service account controller
            set_condition(tenant.status.conditions, self.condition, False, "Missing default service account")
            raise MissingServiceAccountError(f"{account_ref} not yet created")

        desired = copy.deepcopy(existing)
        secrets = desired.get("imagePullSecrets") or []
        if not any(ref.get("name") == IMAGE_PULL_SECRET for ref in secrets):
            secrets.append({"name": IMAGE_PULL_SECRET})
        desired["imagePullSecrets"] = secrets
        try:
            self.apply(tenant, SERVICE_ACCOUNT, existing, desired, ctx, owned=False)
        except WRITE_ERRORS as e:
            raise self.fail(
                tenant, f"update {account_ref}", f"Update {account_ref} failed: {sanitize_exception(e)}"
            ) from e
