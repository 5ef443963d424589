"""Constants for the SSA Nginx Operator."""

# API Group
API_GROUP = "ssanginx.jnytnai0613.github.io"
API_VERSION = "v1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_SSANGINX = "SSANginx"
PLURAL_SSANGINX = "ssanginxes"

KIND_CONFIG_MAP = "ConfigMap"
KIND_DEPLOYMENT = "Deployment"
KIND_SERVICE = "Service"
KIND_INGRESS = "Ingress"
KIND_SECRET = "Secret"

# Operator identity
OPERATOR_NAME = "ssa-nginx-operator"

# Field Manager
FIELD_MANAGER = "ssanginx-fieldmanager"

# Labels
LABEL_MANAGED_BY = f"{API_GROUP}/managed-by"
LABEL_OWNER_NAME = f"{API_GROUP}/owner-name"
LABEL_SECRET_ROLE = f"{API_GROUP}/secret-role"

SECRET_ROLE_CA = "ca"
SECRET_ROLE_CLIENT = "client"

# Pod selector label shared by the workload and the endpoint
POD_LABELS = {"apps": "ssa-nginx"}

# Container info
INIT_CONTAINER_NAME = "init"
INIT_CONTAINER_IMAGE = "alpine"
COMPARE_IMAGE_NAME = "nginx"

# Volumes
CONF_VOLUME_NAME = "conf"
INDEX_VOLUME_NAME = "index"
RELOAD_VOLUME_NAME = "nginx-reload"

CONF_VOLUME_KEY = "default.conf"
INDEX_KEY_MARKER = "html"

CONF_VOLUME_MOUNT_PATH = "/etc/nginx/conf.d/"
INDEX_VOLUME_MOUNT_PATH = "/usr/share/nginx/html/"
RELOAD_VOLUME_MOUNT_PATH = "/tmp/"

# Ingress
DEFAULT_INGRESS_CLASS_NAME = "nginx"
ANNOTATION_REWRITE_TARGET = "nginx.ingress.kubernetes.io/rewrite-target"
ANNOTATION_AUTH_TLS_VERIFY_CLIENT = "nginx.ingress.kubernetes.io/auth-tls-verify-client"
ANNOTATION_AUTH_TLS_SECRET = "nginx.ingress.kubernetes.io/auth-tls-secret"

# Secrets
# Suffixes appended to the descriptor name
CA_SECRET_SUFFIX = "ca-secret"
CLIENT_SECRET_SUFFIX = "cli-secret"

SECRET_KEY_TLS_CRT = "tls.crt"
SECRET_KEY_TLS_KEY = "tls.key"
SECRET_KEY_CA_CRT = "ca.crt"
SECRET_KEY_CLIENT_CRT = "client.crt"
SECRET_KEY_CLIENT_KEY = "client.key"

# Condition Types
COND_READY = "Ready"
COND_APPLY_FAILED = "ApplyFailed"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_VALIDATE_SUCCEEDED = "ValidateSucceeded"
EVENT_REASON_VALIDATE_FAILED = "ValidateFailed"
EVENT_REASON_APPLIED = "Applied"
EVENT_REASON_DELETED = "Deleted"
EVENT_REASON_CERTIFICATES_ISSUED = "CertificatesIssued"
