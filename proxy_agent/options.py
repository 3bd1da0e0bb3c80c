"""Options of the proxy agent and their documented defaults."""

import logging
import os
import uuid
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from proxy_agent import constants
from proxy_agent.durations import Duration, format_duration
from proxy_agent.identifiers import pretty_print_identifiers

logger = logging.getLogger(__name__)

T = TypeVar("T")


def new_uuid() -> str:
    return str(uuid.uuid4())


def default_agent_id(
    environ: Mapping[str, str] = os.environ,
    new_id: Callable[[], str] = new_uuid,
) -> str:
    """Get the agent ID to use when none is given explicitly.

    Args:
        environ: Environment to read PROXY_AGENT_ID from
        new_id: Generator of a fresh unique ID

    Returns:
        str: The environment value if set and non-empty, otherwise a new ID
    """
    agent_id = environ.get(constants.AGENT_ID_ENV_VAR)
    if agent_id:
        return agent_id
    return new_id()


class AgentOptions(BaseModel):
    """Proxy agent options.

    Options are immutable once built. Overrides are applied by building a new
    record with `build_options`.
    """

    model_config = ConfigDict(frozen=True)

    # Authenticating with the proxy server
    agent_cert: str = ""
    agent_key: str = ""
    ca_cert: str = ""

    # Connecting to the proxy server
    proxy_server_host: str = constants.DEFAULT_PROXY_SERVER_HOST
    proxy_server_port: int = constants.DEFAULT_PROXY_SERVER_PORT
    alpn_protos: tuple[str, ...] = Field(default_factory=tuple)

    # Health and admin endpoints
    health_server_host: str = ""
    health_server_port: int = constants.DEFAULT_HEALTH_SERVER_PORT
    admin_bind_address: str = constants.DEFAULT_ADMIN_BIND_ADDRESS
    admin_server_port: int = constants.DEFAULT_ADMIN_SERVER_PORT
    enable_profiling: bool = False
    # Only honoured together with enable_profiling
    enable_contention_profiling: bool = False

    agent_id: str = Field(default_factory=default_agent_id)
    agent_identifiers: str = ""
    sync_interval: Duration = constants.DEFAULT_SYNC_INTERVAL
    probe_interval: Duration = constants.DEFAULT_PROBE_INTERVAL
    sync_interval_cap: Duration = constants.DEFAULT_SYNC_INTERVAL_CAP
    # Idle time after which the agent pings the server to check the transport
    keepalive_time: Duration = constants.DEFAULT_KEEPALIVE_TIME

    service_account_token_path: str = ""

    # Warns before pushing onto a full transfer channel. The fullness check is
    # an unlocked read and must never gate behaviour.
    warn_on_channel_limit: bool = False
    sync_forever: bool = False
    xfr_channel_size: int = constants.DEFAULT_XFR_CHANNEL_SIZE

    # Lease counting
    count_server_leases: bool = False
    lease_namespace: str = constants.DEFAULT_LEASE_NAMESPACE
    lease_label: str = constants.DEFAULT_LEASE_LABEL
    server_count_source: str = constants.DEFAULT_SERVER_COUNT_SOURCE
    kubeconfig_path: str = ""
    api_content_type: str = constants.CONTENT_TYPE_PROTOBUF


def first_not_none(*values: T | None) -> T | None:
    for v in values:
        if v is not None:
            return v
    return None


def new_options(
    environ: Mapping[str, str] = os.environ,
    new_id: Callable[[], str] = new_uuid,
) -> AgentOptions:
    """Create options holding the documented defaults."""
    return AgentOptions(agent_id=default_agent_id(environ, new_id))


def build_options(
    *sources: Mapping[str, Any],
    environ: Mapping[str, str] = os.environ,
    new_id: Callable[[], str] = new_uuid,
) -> AgentOptions:
    """Build options from explicit values layered over the defaults.

    Args:
        sources: Mappings of field name to value. Earlier sources take
            precedence and None means the value was not supplied.
        environ: Environment consulted for the default agent ID
        new_id: Generator used when no agent ID is available

    Returns:
        AgentOptions: The resolved options

    Raises:
        pydantic.ValidationError: If a supplied value has the wrong type
    """
    defaults = new_options(environ, new_id)
    values = {
        name: first_not_none(
            *(source.get(name) for source in sources), getattr(defaults, name)
        )
        for name in AgentOptions.model_fields
    }
    return AgentOptions(**values)


def log_options(options: AgentOptions) -> None:
    """Log the resolved options for diagnostics."""
    logger.debug("AgentCert set to %r.", options.agent_cert)
    logger.debug("AgentKey set to %r.", options.agent_key)
    logger.debug("CACert set to %r.", options.ca_cert)
    logger.debug("ProxyServerHost set to %r.", options.proxy_server_host)
    logger.debug("ProxyServerPort set to %d.", options.proxy_server_port)
    logger.debug("ALPNProtos set to %s.", options.alpn_protos)
    logger.debug("HealthServerHost set to %s.", options.health_server_host)
    logger.debug("HealthServerPort set to %d.", options.health_server_port)
    logger.debug("Admin bind address set to %r.", options.admin_bind_address)
    logger.debug("AdminServerPort set to %d.", options.admin_server_port)
    logger.debug("EnableProfiling set to %s.", options.enable_profiling)
    logger.debug(
        "EnableContentionProfiling set to %s.", options.enable_contention_profiling
    )
    logger.debug("AgentID set to %s.", options.agent_id)
    logger.debug("SyncInterval set to %s.", format_duration(options.sync_interval))
    logger.debug("ProbeInterval set to %s.", format_duration(options.probe_interval))
    logger.debug(
        "SyncIntervalCap set to %s.", format_duration(options.sync_interval_cap)
    )
    logger.debug("Keepalive time set to %s.", format_duration(options.keepalive_time))
    logger.debug(
        "ServiceAccountTokenPath set to %r.", options.service_account_token_path
    )
    logger.debug(
        "AgentIdentifiers set to %s.",
        pretty_print_identifiers(options.agent_identifiers),
    )
    logger.debug("WarnOnChannelLimit set to %s.", options.warn_on_channel_limit)
    logger.debug("SyncForever set to %s.", options.sync_forever)
    logger.debug("CountServerLeases set to %s.", options.count_server_leases)
    logger.debug("LeaseNamespace set to %s.", options.lease_namespace)
    logger.debug("LeaseLabel set to %s.", options.lease_label)
    logger.debug("ServerCountSource set to %s.", options.server_count_source)
    logger.debug("Kubeconfig set to %r.", options.kubeconfig_path)
    logger.debug("ChannelSize set to %d.", options.xfr_channel_size)
    logger.debug("APIContentType set to %s.", options.api_content_type)

    if options.warn_on_channel_limit:
        logger.warning(
            "Channel limit warnings rely on an unsynchronized read of the "
            "transfer channel and may be inaccurate"
        )
