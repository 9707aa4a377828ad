"""Constants for the Tenant Operator."""

# API Group
API_GROUP = "config.cloudrobotics.com"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_TENANT = "Tenant"
PLURAL_TENANTS = "tenants"

# Labels
LABEL_TENANT = "cloud-robotics-tenant"

# Annotations
ANNOTATION_DNS_CLASS = "dns.gardener.cloud/class"
ANNOTATION_SERVICE_ACCOUNT_NAME = "kubernetes.io/service-account.name"

# Finalizers
FINALIZER = "tenant-controller.config.cloud-robotics.com"

# Tenants and namespaces
DEFAULT_TENANT_NAME = "default"
DEFAULT_NAMESPACE = "default"
TENANT_PREFIX = "t-"
ROBOT_CONFIG_CLOUD_NAMESPACE = "robot-config"
APP_NAMESPACE_INFIX = "app-"

# Names of dependent resources
IMAGE_PULL_SECRET = "cloud-robotics-images"
ROBOT_SETUP_CONFIGMAP = "robot-setup"
ROBOT_SERVICE_ACCOUNT = "robot-service"
ROBOT_SETUP_SERVICE_ACCOUNT = "robot-service-setup"
DEFAULT_SERVICE_ACCOUNT = "default"
ROBOT_TOKEN_PREFIX = "robot-token-"
CR_SYNCER_ROLE_BINDING = "cloud-robotics:cr-syncer:robot-service"
ROBOT_SETUP_ROLE_BINDING = "cloud-robotics:robot-setup-service"
DNS_ENTRY_NAME = "tenant-domain"
GATEWAY_NAME = "tenant-gateway"
ISTIO_LB_SERVICE_NAME = "istio-ingressgateway"
ISTIO_NAMESPACE = "istio-system"

# Domains
# Certificate common names are limited to 64 characters, two are kept for "*."
MAX_TENANT_DOMAIN_LENGTH = 62
TENANT_SUBDOMAIN_INFIX = ".t."
DNS_TTL_SECONDS = 600
DNS_CLASS = "garden"
READY_STATE = "Ready"

# Condition Types
COND_NAMESPACE = "Namespace"
COND_DOMAIN = "Domain"
COND_CERTIFICATE = "Certificate"
COND_GATEWAY = "Gateway"
COND_SERVICE_ACCOUNT = "ServiceAccount"
COND_PERMISSIONS = "Permissions"
COND_PULL_SECRET = "PullSecret"
COND_ROBOT_SETUP = "RobotSetupConfig"

GATEWAY_CONDITIONS = (COND_DOMAIN, COND_CERTIFICATE, COND_GATEWAY)

# Event Reasons
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_FINALIZER_ADDED = "FinalizerAdded"
EVENT_REASON_TEARDOWN_PENDING = "TeardownPending"
EVENT_REASON_TEARDOWN_COMPLETED = "TeardownCompleted"
EVENT_REASON_RESOURCE_CREATED = "ResourceCreated"
EVENT_REASON_ENSURE_FAILED = "EnsureFailed"
