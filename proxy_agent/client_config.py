"""Configuration handed to the connection subsystem of the agent."""

from typing import Any

from pydantic import BaseModel, ConfigDict

from proxy_agent.durations import Duration
from proxy_agent.identifiers import IdentifierSet, decode_identifiers
from proxy_agent.options import AgentOptions


def join_host_port(host: str, port: int) -> str:
    """Join host and port into `host:port`, bracketing IPv6 hosts."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


class ClientSetConfig(BaseModel):
    """Settings needed to dial and keep connections to the proxy servers.

    Derived once from validated options; it holds copies of their values only.
    """

    model_config = ConfigDict(frozen=True)

    address: str
    agent_id: str
    agent_identifiers: str
    sync_interval: Duration
    probe_interval: Duration
    sync_interval_cap: Duration
    dial_options: tuple[Any, ...] = ()
    service_account_token_path: str
    warn_on_channel_limit: bool
    sync_forever: bool
    xfr_channel_size: int
    server_count_source: str

    def identifiers(self) -> IdentifierSet:
        return decode_identifiers(self.agent_identifiers)


def client_set_config(options: AgentOptions, *dial_options: Any) -> ClientSetConfig:
    """Project validated options into the client dial configuration.

    Args:
        options: Options that already passed validation
        dial_options: Extra options passed through to the dialer

    Returns:
        ClientSetConfig: The derived configuration
    """
    return ClientSetConfig(
        address=join_host_port(options.proxy_server_host, options.proxy_server_port),
        agent_id=options.agent_id,
        agent_identifiers=options.agent_identifiers,
        sync_interval=options.sync_interval,
        probe_interval=options.probe_interval,
        sync_interval_cap=options.sync_interval_cap,
        dial_options=dial_options,
        service_account_token_path=options.service_account_token_path,
        warn_on_channel_limit=options.warn_on_channel_limit,
        sync_forever=options.sync_forever,
        xfr_channel_size=options.xfr_channel_size,
        server_count_source=options.server_count_source,
    )
