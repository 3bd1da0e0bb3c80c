#!/usr/bin/env python3
"""Main entrypoint for checking and resolving proxy agent options."""

import argparse
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any, cast, get_args

import yaml
from pydantic import ValidationError

from proxy_agent import constants
from proxy_agent.client_config import client_set_config
from proxy_agent.durations import parse_duration
from proxy_agent.errors import OptionsError
from proxy_agent.options import AgentOptions, build_options, log_options
from proxy_agent.validation import validate


class Args(argparse.Namespace):
    config: Path | None
    agent_cert: str | None
    agent_key: str | None
    ca_cert: str | None
    proxy_server_host: str | None
    proxy_server_port: int | None
    alpn_protos: list[str] | None
    health_server_host: str | None
    health_server_port: int | None
    admin_bind_address: str | None
    admin_server_port: int | None
    enable_profiling: bool | None
    enable_contention_profiling: bool | None
    agent_id: str | None
    agent_identifiers: str | None
    sync_interval: timedelta | None
    probe_interval: timedelta | None
    sync_interval_cap: timedelta | None
    keepalive_time: timedelta | None
    service_account_token_path: str | None
    warn_on_channel_limit: bool | None
    sync_forever: bool | None
    xfr_channel_size: int | None
    count_server_leases: bool | None
    lease_namespace: str | None
    lease_label: str | None
    server_count_source: str | None
    kubeconfig_path: str | None
    api_content_type: str | None
    log_level: str
    rich_logs: bool
    print_config_and_exit: bool


logger = logging.getLogger(__name__)


def _duration(value: str) -> timedelta:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _comma_list(value: str) -> list[str]:
    return [item for item in value.split(",") if item]


def parse_args(argv: list[str] | None = None) -> Args:
    """Parse command line arguments.

    Every option flag defaults to None so that only the values given on the
    command line override the config file and the built-in defaults.
    """
    parser = argparse.ArgumentParser(
        prog="proxy-agent",
        description="Resolve and validate proxy agent options",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to YAML configuration file",
    )

    parser.add_argument(
        "--agent-cert",
        help="If non-empty secure communication with this cert.",
    )
    parser.add_argument(
        "--agent-key",
        help="If non-empty secure communication with this key.",
    )
    parser.add_argument(
        "--ca-cert",
        help="If non-empty the CAs we use to validate clients.",
    )
    parser.add_argument(
        "--proxy-server-host",
        help=f"The hostname to use to connect to the proxy-server (default: {constants.DEFAULT_PROXY_SERVER_HOST}).",
    )
    parser.add_argument(
        "--proxy-server-port",
        type=int,
        help=f"The port the proxy server is listening on (default: {constants.DEFAULT_PROXY_SERVER_PORT}).",
    )
    parser.add_argument(
        "--alpn-proto",
        dest="alpn_protos",
        type=_comma_list,
        action="extend",
        help="Additional ALPN protocols to be presented when connecting to the server. "
        "May be repeated or comma separated.",
    )
    parser.add_argument(
        "--health-server-host",
        help="The host address to listen on, without port.",
    )
    parser.add_argument(
        "--health-server-port",
        type=int,
        help=f"The port the health server is listening on (default: {constants.DEFAULT_HEALTH_SERVER_PORT}).",
    )
    parser.add_argument(
        "--admin-bind-address",
        help="Bind address for admin connections. If empty, we will bind to all interfaces.",
    )
    parser.add_argument(
        "--admin-server-port",
        type=int,
        help=f"The port the admin server is listening on (default: {constants.DEFAULT_ADMIN_SERVER_PORT}).",
    )
    parser.add_argument(
        "--enable-profiling",
        action=argparse.BooleanOptionalAction,
        help="Enable profiling at host:admin-port/debug/pprof.",
    )
    parser.add_argument(
        "--enable-contention-profiling",
        action=argparse.BooleanOptionalAction,
        help="Enable contention profiling at host:admin-port/debug/pprof/block. "
        "--enable-profiling must also be set.",
    )
    parser.add_argument(
        "--agent-id",
        help=f"The unique ID of this agent. Can also be set by the '{constants.AGENT_ID_ENV_VAR}' "
        "environment variable. Default to a generated uuid if not set.",
    )
    parser.add_argument(
        "--agent-identifiers",
        help="Identifiers of the agent that will be used by the server when choosing agent. "
        "The list must be URL encoded, e.g. host=localhost&host=node1.mydomain.com"
        "&cidr=127.0.0.1/16&ipv4=1.2.3.4&ipv6=:::::&default-route=true",
    )
    parser.add_argument(
        "--sync-interval",
        type=_duration,
        help="The initial interval by which the agent periodically checks if it has "
        "connections to all instances of the proxy server (default: 1s).",
    )
    parser.add_argument(
        "--probe-interval",
        type=_duration,
        help="The interval by which the agent periodically checks if its connections "
        "to the proxy server are ready (default: 1s).",
    )
    parser.add_argument(
        "--sync-interval-cap",
        type=_duration,
        help="The maximum interval for the sync interval to back off to when unable "
        "to connect to the proxy server (default: 10s).",
    )
    parser.add_argument(
        "--keepalive-time",
        type=_duration,
        help="Time for agent keepalive (default: 1h).",
    )
    parser.add_argument(
        "--service-account-token-path",
        help="If non-empty proxy agent uses this token to prove its identity to the proxy server.",
    )
    parser.add_argument(
        "--warn-on-channel-limit",
        action=argparse.BooleanOptionalAction,
        help="Turns on a warning if the system is going to push to a full channel. "
        "The check involves an unsafe read.",
    )
    parser.add_argument(
        "--sync-forever",
        action=argparse.BooleanOptionalAction,
        help="If set, the agent continues syncing, in order to support server count changes.",
    )
    parser.add_argument(
        "--xfr-channel-size",
        type=int,
        help="Size of the channel for transferring data between the agent and the proxy "
        f"server (default: {constants.DEFAULT_XFR_CHANNEL_SIZE}).",
    )
    parser.add_argument(
        "--count-server-leases",
        action=argparse.BooleanOptionalAction,
        help="Enables lease counting system to determine the number of proxy servers to connect to.",
    )
    parser.add_argument(
        "--lease-namespace",
        help=f"Namespace where lease objects are managed (default: {constants.DEFAULT_LEASE_NAMESPACE}).",
    )
    parser.add_argument(
        "--lease-label",
        help=f"The labels on which the lease objects are managed (default: {constants.DEFAULT_LEASE_LABEL}).",
    )
    parser.add_argument(
        "--server-count-source",
        help="Defines how the server counts from leases and from server responses are combined: "
        "'default' to use only one source, 'max' to take the larger value. "
        f"One of {list(get_args(constants.ServerCountSource))}.",
    )
    parser.add_argument(
        "--kubeconfig",
        dest="kubeconfig_path",
        help="Path to the kubeconfig file",
    )
    parser.add_argument(
        "--kube-api-content-type",
        dest="api_content_type",
        help=f"Content type of requests sent to apiserver (default: {constants.CONTENT_TYPE_PROTOBUF}).",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set the logging level",
    )

    parser.add_argument(
        "--rich-logs",
        action="store_true",
        help="Enable rich colored logging output",
    )

    parser.add_argument(
        "--print-config-and-exit",
        action="store_true",
        help="Print the resolved configuration as JSON and exit",
    )

    return cast(Args, parser.parse_args(argv, namespace=Args()))


def configure_logging(log_level: str, use_rich: bool = False) -> None:
    """Configure logging with optional rich formatting.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        use_rich: Whether to use rich colored logging
    """
    if use_rich:
        from rich.console import Console
        from rich.logging import RichHandler

        logging.basicConfig(
            level=getattr(logging, log_level),
            format="%(message)s",
            datefmt="[%X]",
            handlers=[
                RichHandler(
                    console=Console(stderr=True),
                    show_path=True,
                    show_time=True,
                    show_level=True,
                    markup=True,
                    rich_tracebacks=True,
                )
            ],
        )
    else:
        logging.basicConfig(
            level=getattr(logging, log_level),
            format="%(asctime)s [%(name)s:%(filename)s:%(lineno)d] %(levelname)s: %(message)s",
        )


def load_config_file(path: Path) -> dict[str, Any]:
    """Load option values from a YAML file keyed by option field names.

    Raises:
        OSError: If the file cannot be read
        yaml.YAMLError: If the file is not valid YAML
        OptionsError: If the document is not a mapping keyed by strings
    """
    logger.info("Loading configuration from %s", path)
    with open(path, "r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f)

    if config_dict is None:
        return {}
    if not isinstance(config_dict, dict):
        raise OptionsError(f"configuration file {path} must contain a mapping")
    non_string_keys = [key for key in config_dict if not isinstance(key, str)]
    if non_string_keys:
        raise OptionsError(
            f"configuration file {path} has non-string keys: {non_string_keys!r}"
        )

    unknown = sorted(set(config_dict) - set(AgentOptions.model_fields))
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(unknown))
    return config_dict


def main(argv: list[str] | None = None) -> int:
    """Main function."""
    args = parse_args(argv)

    configure_logging(args.log_level, args.rich_logs)

    try:
        config_dict = load_config_file(args.config) if args.config else {}

        flag_values = {
            name: getattr(args, name, None) for name in AgentOptions.model_fields
        }
        options = build_options(flag_values, config_dict)
        log_options(options)

        validate(options)
        client_config = client_set_config(options)

        if args.print_config_and_exit:
            logger.info("Printing resolved configuration")
            resolved = {
                "options": options.model_dump(mode="json"),
                "client": client_config.model_dump(mode="json", exclude={"dial_options"}),
            }
            print(json.dumps(resolved, indent=2, sort_keys=True))
            return 0

        logger.info(
            "Proxy agent %s configured to connect to %s",
            client_config.agent_id,
            client_config.address,
        )

    except ValidationError as e:
        logger.error(
            "Invalid config\n"
            + "\n".join(
                [
                    f"{'.'.join([str(loc) for loc in err['loc']])}: {err['msg']} (got {err['input']})"
                    for err in e.errors()
                ]
            )
        )
        return 1
    except OptionsError as e:
        logger.error("Invalid options: %s", e)
        return 1
    except yaml.YAMLError as e:
        logger.error("YAML parsing error in %s: %s", args.config, e)
        return 1
    except UnicodeDecodeError as e:
        logger.error("Cannot decode configuration file %s: %s", args.config, e)
        return 1
    except OSError as e:
        logger.error("Cannot read configuration file: %s", e)
        return 1
    except Exception as e:
        logger.error("Error resolving proxy agent options: %s", e, exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
