from datetime import timedelta
from typing import Literal

AGENT_ID_ENV_VAR = "PROXY_AGENT_ID"

# Proxy server connection
DEFAULT_PROXY_SERVER_HOST = "127.0.0.1"
DEFAULT_PROXY_SERVER_PORT = 8091

# Health and admin endpoints
DEFAULT_HEALTH_SERVER_PORT = 8093
DEFAULT_ADMIN_BIND_ADDRESS = "127.0.0.1"
DEFAULT_ADMIN_SERVER_PORT = 8094

# Timing constants
DEFAULT_SYNC_INTERVAL = timedelta(seconds=1)
DEFAULT_PROBE_INTERVAL = timedelta(seconds=1)
DEFAULT_SYNC_INTERVAL_CAP = timedelta(seconds=10)
DEFAULT_KEEPALIVE_TIME = timedelta(hours=1)

DEFAULT_XFR_CHANNEL_SIZE = 150

# Lease counting
DEFAULT_LEASE_NAMESPACE = "kube-system"
DEFAULT_LEASE_LABEL = "k8s-app=konnectivity-server"

ServerCountSource = Literal["", "default", "max"]
DEFAULT_SERVER_COUNT_SOURCE = "default"

# The kube-apiserver content type for protobuf encoded requests
CONTENT_TYPE_PROTOBUF = "application/vnd.kubernetes.protobuf"
