"""Builders for the desired state of tenant dependent resources."""

from __future__ import annotations

from typing import Any

from ..constants import (
    ANNOTATION_DNS_CLASS,
    CR_SYNCER_ROLE_BINDING,
    DNS_CLASS,
    DNS_TTL_SECONDS,
    ROBOT_SERVICE_ACCOUNT,
    ROBOT_SETUP_ROLE_BINDING,
    ROBOT_SETUP_SERVICE_ACCOUNT,
)
from ..utils.naming import certificate_name

CIPHER_SUITES = [
    "ECDHE-RSA-CHACHA20-POLY1305",
    "ECDHE-RSA-AES256-GCM-SHA384",
    "ECDHE-RSA-AES256-SHA",
    "ECDHE-RSA-AES128-GCM-SHA256",
    "ECDHE-RSA-AES128-SHA",
]


def role_binding_specs(main_namespace: str, robot_config_namespace: str) -> list[dict[str, str]]:
    """Role bindings granting the robot service accounts their cloud permissions.

    Returns:
        One entry per binding with its name, namespace, cluster role and subject
    """
    return [
        {
            "name": CR_SYNCER_ROLE_BINDING,
            "namespace": main_namespace,
            "cluster_role": "cloud-robotics:cr-syncer",
            "subject": ROBOT_SERVICE_ACCOUNT,
        },
        {
            "name": ROBOT_SETUP_ROLE_BINDING,
            "namespace": robot_config_namespace,
            "cluster_role": "cloud-robotics:robot-setup:robot-config",
            "subject": ROBOT_SETUP_SERVICE_ACCOUNT,
        },
        {
            "name": ROBOT_SETUP_ROLE_BINDING,
            "namespace": main_namespace,
            "cluster_role": "cloud-robotics:robot-setup:robots",
            "subject": ROBOT_SETUP_SERVICE_ACCOUNT,
        },
    ]


def role_binding_fields(cluster_role: str, subject: str, subject_namespace: str) -> dict[str, Any]:
    """roleRef and subjects of a role binding."""
    return {
        "roleRef": {
            "apiGroup": "rbac.authorization.k8s.io",
            "kind": "ClusterRole",
            "name": cluster_role,
        },
        "subjects": [
            {
                "kind": "ServiceAccount",
                "name": subject,
                "namespace": subject_namespace,
            }
        ],
    }


def dns_entry_fields(domain: str, target: str) -> dict[str, Any]:
    """Spec and annotations of the wildcard DNS entry of a tenant."""
    return {
        "annotations": {ANNOTATION_DNS_CLASS: DNS_CLASS},
        "spec": {
            "dnsName": f"*.{domain}",
            "ttl": DNS_TTL_SECONDS,
            "targets": [target],
        },
    }


def certificate_fields(tenant_name: str, domain: str) -> dict[str, Any]:
    """Spec of the wildcard TLS certificate of a tenant."""
    return {
        "spec": {
            "commonName": f"*.{domain}",
            "secretName": certificate_name(tenant_name),
        },
    }


def gateway_fields(tenant_name: str, domain: str) -> dict[str, Any]:
    """Spec of the tenant gateway: HTTPS with the tenant certificate, HTTP redirecting to it."""
    hosts = [f"*.{domain}"]
    return {
        "spec": {
            "selector": {
                "app": "istio-ingressgateway",
                "istio": "ingressgateway",
            },
            "servers": [
                {
                    "hosts": hosts,
                    "port": {"name": "https", "number": 443, "protocol": "HTTPS"},
                    "tls": {
                        "credentialName": certificate_name(tenant_name),
                        "minProtocolVersion": "TLSV1_2",
                        "mode": "SIMPLE",
                        "cipherSuites": list(CIPHER_SUITES),
                    },
                },
                {
                    "hosts": hosts,
                    "port": {"name": "http", "number": 80, "protocol": "HTTP"},
                    "tls": {"httpsRedirect": True},
                },
            ],
        },
    }


def robot_setup_data(tenant_name: str, tenant_domain: str, main_namespace: str) -> dict[str, str]:
    """Keys added to the robot-setup configuration snapshot of a tenant."""
    return {
        "tenant": tenant_name,
        "tenant_domain": tenant_domain,
        "tenant_main_namespace": main_namespace,
    }
