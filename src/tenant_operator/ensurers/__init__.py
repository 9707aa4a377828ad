"""Ensurers for tenant dependent resources."""

from .base import BaseEnsurer
from .certificate import CertificateEnsurer
from .domain import DomainEnsurer
from .gateway import GatewayEnsurer
from .namespace import NamespaceEnsurer
from .permissions import PermissionsEnsurer
from .pull_secret import PullSecretEnsurer
from .robot_setup import RobotSetupEnsurer
from .service_account import ServiceAccountEnsurer

__all__ = [
    "BaseEnsurer",
    "NamespaceEnsurer",
    "ServiceAccountEnsurer",
    "PermissionsEnsurer",
    "PullSecretEnsurer",
    "DomainEnsurer",
    "CertificateEnsurer",
    "GatewayEnsurer",
    "RobotSetupEnsurer",
]
