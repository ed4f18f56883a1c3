"""Constants used across the operator."""

# PretzelAI custom resource coordinates
GROUP = "pretzelai.pretzelai.local"
VERSION = "v1alpha1"
PLURAL = "pretzelais"
API_VERSION = f"{GROUP}/{VERSION}"

# Object kinds understood by the object store
KIND_PRETZELAI = "PretzelAI"
KIND_DEPLOYMENT = "Deployment"
KIND_SERVICE = "Service"
KIND_CONFIGMAP = "ConfigMap"

# Deletion-marker token owned by this controller
FINALIZER = "pretzelai.finalizers.pretzelai.local"

# kopf's own finalizer must never collide with ours
KOPF_FINALIZER = "pretzelai.pretzelai.local/kopf-finalizer"

# Labels used to identify operator-managed resources
MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
MANAGED_BY_VALUE = "pretzelai-operator"
INSTANCE_LABEL = "app.kubernetes.io/instance"
APP_LABEL = "app"

# Workload
CONTAINER_NAME = "pretzelai"
CONTAINER_PORT = 8888
IMAGE_PULL_POLICY = "IfNotPresent"
DEFAULT_REPLICAS = 1

# Exposure
SERVICE_PORT = 80
SERVICE_TARGET_PORT = CONTAINER_PORT
DEFAULT_PROTOCOL = "TCP"

# Config bundle
CONFIG_BUNDLE_DATA = {"config.yaml": "example: value"}
CONFIG_BUNDLE_APPLIED = "Applied"
