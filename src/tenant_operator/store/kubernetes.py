"""Object store backed by the Kubernetes API."""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable

import urllib3
from kubernetes import client
from kubernetes.client.exceptions import ApiException

from .. import metrics
from ..utils.errors import ConflictError, NotFoundError, StoreError, sanitize_error_message
from ..utils.rate_limit import RateLimiter, is_rate_limit_error
from .base import ResourceKind

logger = logging.getLogger(__name__)

API_TYPE = "k8s"


def _snake_case(kind: str) -> str:
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", kind).lower()


class KubernetesObjectStore:
    """ObjectStore implementation using the official Kubernetes client.

    Core and RBAC kinds go through the typed APIs, everything else through
    CustomObjectsApi. Results are returned as plain dicts in their JSON shape.
    """

    def __init__(
        self,
        api_client: client.ApiClient | None = None,
        core_v1_api: client.CoreV1Api | None = None,
        rbac_v1_api: client.RbacAuthorizationV1Api | None = None,
        custom_objects_api: client.CustomObjectsApi | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.api_client = api_client or client.ApiClient()
        self.core_v1_api = core_v1_api or client.CoreV1Api(self.api_client)
        self.rbac_v1_api = rbac_v1_api or client.RbacAuthorizationV1Api(self.api_client)
        self.custom_objects_api = custom_objects_api or client.CustomObjectsApi(self.api_client)
        self.rate_limiter = rate_limiter

    def _typed_api(self, kind: ResourceKind) -> Any:
        if kind.group == "rbac.authorization.k8s.io":
            return self.rbac_v1_api
        return self.core_v1_api

    def _call(self, operation: str, kind: ResourceKind, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Invoke an API method with rate limiting, metrics and error mapping."""
        if kwargs.get("_request_timeout") is None:
            kwargs.pop("_request_timeout", None)
        if self.rate_limiter is not None:
            self.rate_limiter.acquire()

        op = f"{operation}_{_snake_case(kind.kind)}"
        start_time = time.time()
        try:
            result = fn(*args, **kwargs)
            metrics.api_call_total.labels(api_type=API_TYPE, operation=op, result="success").inc()
            return result
        except ApiException as e:
            metrics.api_call_total.labels(api_type=API_TYPE, operation=op, result="error").inc()
            raise self._map_api_exception(e, operation, kind) from e
        except urllib3.exceptions.HTTPError as e:
            metrics.api_call_total.labels(api_type=API_TYPE, operation=op, result="error").inc()
            raise StoreError(f"{operation} {kind}: {sanitize_error_message(str(e))}") from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type=API_TYPE, operation=op).observe(duration)

    def _map_api_exception(self, e: ApiException, operation: str, kind: ResourceKind) -> StoreError:
        message = f"{operation} {kind}: {e.status} {sanitize_error_message(str(e.reason))}"
        if e.status == 404:
            return NotFoundError(message)
        if e.status == 409:
            return ConflictError(message)
        if is_rate_limit_error(e):
            metrics.rate_limit_hits_total.labels(api_type=API_TYPE).inc()
            logger.warning(f"Kubernetes API rate limit hit during {operation} {kind}")
        return StoreError(message, status=e.status)

    def _to_dict(self, obj: Any) -> Any:
        return self.api_client.sanitize_for_serialization(obj)

    def get(
        self, kind: ResourceKind, name: str, namespace: str | None = None, timeout: float | None = None
    ) -> dict[str, Any]:
        if kind.is_core:
            api = self._typed_api(kind)
            if kind.namespaced:
                fn = getattr(api, f"read_namespaced_{_snake_case(kind.kind)}")
                result = self._call("get", kind, fn, name, namespace, _request_timeout=timeout)
            else:
                fn = getattr(api, f"read_{_snake_case(kind.kind)}")
                result = self._call("get", kind, fn, name, _request_timeout=timeout)
            return self._to_dict(result)

        api = self.custom_objects_api
        if kind.namespaced:
            return self._call(
                "get", kind, api.get_namespaced_custom_object,
                kind.group, kind.version, namespace, kind.plural, name,
                _request_timeout=timeout,
            )
        return self._call(
            "get", kind, api.get_cluster_custom_object,
            kind.group, kind.version, kind.plural, name,
            _request_timeout=timeout,
        )

    def list(
        self, kind: ResourceKind, namespace: str | None = None, timeout: float | None = None
    ) -> list[dict[str, Any]]:
        if kind.is_core:
            api = self._typed_api(kind)
            snake = _snake_case(kind.kind)
            if not kind.namespaced:
                result = self._call("list", kind, getattr(api, f"list_{snake}"), _request_timeout=timeout)
            elif namespace is None:
                fn = getattr(api, f"list_{snake}_for_all_namespaces")
                result = self._call("list", kind, fn, _request_timeout=timeout)
            else:
                fn = getattr(api, f"list_namespaced_{snake}")
                result = self._call("list", kind, fn, namespace, _request_timeout=timeout)
            return self._to_dict(result).get("items") or []

        api = self.custom_objects_api
        if kind.namespaced and namespace is not None:
            result = self._call(
                "list", kind, api.list_namespaced_custom_object,
                kind.group, kind.version, namespace, kind.plural,
                _request_timeout=timeout,
            )
        else:
            result = self._call(
                "list", kind, api.list_cluster_custom_object,
                kind.group, kind.version, kind.plural,
                _request_timeout=timeout,
            )
        return result.get("items") or []

    def create(self, kind: ResourceKind, body: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
        namespace = body.get("metadata", {}).get("namespace")
        if kind.is_core:
            api = self._typed_api(kind)
            if kind.namespaced:
                fn = getattr(api, f"create_namespaced_{_snake_case(kind.kind)}")
                result = self._call("create", kind, fn, namespace, body, _request_timeout=timeout)
            else:
                fn = getattr(api, f"create_{_snake_case(kind.kind)}")
                result = self._call("create", kind, fn, body, _request_timeout=timeout)
            return self._to_dict(result)

        api = self.custom_objects_api
        if kind.namespaced:
            return self._call(
                "create", kind, api.create_namespaced_custom_object,
                kind.group, kind.version, namespace, kind.plural, body,
                _request_timeout=timeout,
            )
        return self._call(
            "create", kind, api.create_cluster_custom_object,
            kind.group, kind.version, kind.plural, body,
            _request_timeout=timeout,
        )

    def update(self, kind: ResourceKind, body: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
        return self._replace("update", kind, body, timeout, status=False)

    def update_status(
        self, kind: ResourceKind, body: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        return self._replace("update_status", kind, body, timeout, status=True)

    def _replace(
        self, operation: str, kind: ResourceKind, body: dict[str, Any], timeout: float | None, status: bool
    ) -> dict[str, Any]:
        meta = body.get("metadata", {})
        name = meta["name"]
        namespace = meta.get("namespace")
        suffix = "_status" if status else ""

        if kind.is_core:
            api = self._typed_api(kind)
            snake = _snake_case(kind.kind)
            if kind.namespaced:
                fn = getattr(api, f"replace_namespaced_{snake}{suffix}")
                result = self._call(operation, kind, fn, name, namespace, body, _request_timeout=timeout)
            else:
                fn = getattr(api, f"replace_{snake}{suffix}")
                result = self._call(operation, kind, fn, name, body, _request_timeout=timeout)
            return self._to_dict(result)

        api = self.custom_objects_api
        if kind.namespaced:
            fn = getattr(api, f"replace_namespaced_custom_object{suffix}")
            return self._call(
                operation, kind, fn,
                kind.group, kind.version, namespace, kind.plural, name, body,
                _request_timeout=timeout,
            )
        fn = getattr(api, f"replace_cluster_custom_object{suffix}")
        return self._call(
            operation, kind, fn,
            kind.group, kind.version, kind.plural, name, body,
            _request_timeout=timeout,
        )

    def delete(
        self, kind: ResourceKind, name: str, namespace: str | None = None, timeout: float | None = None
    ) -> None:
        if kind.is_core:
            api = self._typed_api(kind)
            snake = _snake_case(kind.kind)
            if kind.namespaced:
                fn = getattr(api, f"delete_namespaced_{snake}")
                self._call("delete", kind, fn, name, namespace, _request_timeout=timeout)
            else:
                self._call("delete", kind, getattr(api, f"delete_{snake}"), name, _request_timeout=timeout)
            return

        api = self.custom_objects_api
        if kind.namespaced:
            self._call(
                "delete", kind, api.delete_namespaced_custom_object,
                kind.group, kind.version, namespace, kind.plural, name,
                _request_timeout=timeout,
            )
        else:
            self._call(
                "delete", kind, api.delete_cluster_custom_object,
                kind.group, kind.version, kind.plural, name,
                _request_timeout=timeout,
            )
