"""Shared pytest fixtures and configuration."""

import pytest
import tempfile
from pathlib import Path

from proxy_agent.options import AgentOptions, new_options


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def empty_environ():
    """Environment without PROXY_AGENT_ID."""
    return {}


@pytest.fixture
def default_options(empty_environ) -> AgentOptions:
    """Options holding the documented defaults and a fixed agent ID."""
    return new_options(environ=empty_environ, new_id=lambda: "test-agent")


@pytest.fixture
def credential_files(temp_dir):
    """Create agent cert, key, CA, token and kubeconfig files."""
    files = {}
    for name in ["agent.crt", "agent.key", "ca.crt", "token", "kubeconfig"]:
        path = temp_dir / name
        path.write_text("test")
        files[name] = str(path)
    return files


@pytest.fixture
def sample_identifiers():
    """Identifier string covering every identifier type."""
    return (
        "host=localhost&host=node1.mydomain.com&cidr=127.0.0.1%2F16"
        "&ipv4=1.2.3.4&ipv4=5.6.7.8&ipv6=%3A%3A1&default-route=true"
    )
