"""Consistency checks run on proxy agent options before the agent starts.

Checks run in a fixed order and the first failure is reported:
certificates, ports, channel size, profiling, sync intervals, service account
token, agent identifiers, kubeconfig, lease label, server count source.
"""

import logging
import os
from collections.abc import Callable
from typing import get_args

from proxy_agent.constants import ServerCountSource
from proxy_agent.durations import format_duration
from proxy_agent.errors import (
    IdentifierError,
    InvalidChannelSizeError,
    InvalidIntervalOrderingError,
    InvalidLabelSelectorError,
    InvalidPortError,
    InvalidProfilingDependencyError,
    InvalidServerCountSourceError,
    MissingPairedCredentialError,
    OptionsError,
    PathNotFoundError,
)
from proxy_agent.identifiers import decode_identifiers
from proxy_agent.labels import parse_labels
from proxy_agent.options import AgentOptions

logger = logging.getLogger(__name__)

Check = Callable[[AgentOptions], OptionsError | None]


class OptionsValidator:
    """Validates proxy agent options.

    The filesystem and the label selector parser are injected so that the
    checks can run without touching real files.
    """

    def __init__(
        self,
        exists: Callable[[str], bool] = os.path.exists,
        label_parser: Callable[[str], object] = parse_labels,
    ):
        """
        Args:
            exists: Returns whether a path exists. Unreadable paths are
                treated as missing.
            label_parser: Parses the lease label selector, raising
                InvalidLabelSelectorError when it is malformed.
        """
        self.exists = exists
        self.label_parser = label_parser

    def checks(self) -> list[Check]:
        return [
            self.check_credentials,
            self.check_ports,
            self.check_channel_size,
            self.check_profiling,
            self.check_sync_interval,
            self.check_service_account_token,
            self.check_agent_identifiers,
            self.check_kubeconfig,
            self.check_lease_label,
            self.check_server_count_source,
        ]

    def find_error(self, options: AgentOptions) -> OptionsError | None:
        """Return the error of the first failing check, or None if valid."""
        for check in self.checks():
            error = check(options)
            if error is not None:
                return error
        return None

    def validate(self, options: AgentOptions) -> None:
        """Validate the options.

        Raises:
            OptionsError: The first violated constraint
        """
        error = self.find_error(options)
        if error is not None:
            logger.debug("Options rejected: %s", error)
            raise error

    def _missing_path(self, option: str, path: str) -> PathNotFoundError | None:
        if path and not self.exists(path):
            return PathNotFoundError(option, path)
        return None

    def check_credentials(self, options: AgentOptions) -> OptionsError | None:
        if options.agent_key:
            if error := self._missing_path("agent key", options.agent_key):
                return error
            if not options.agent_cert:
                return MissingPairedCredentialError(
                    f"cannot have agent cert empty when agent key is set to {options.agent_key!r}"
                )
        if options.agent_cert:
            if error := self._missing_path("agent cert", options.agent_cert):
                return error
            if not options.agent_key:
                return MissingPairedCredentialError(
                    f"cannot have agent key empty when agent cert is set to {options.agent_cert!r}"
                )
        return self._missing_path("agent CA cert", options.ca_cert)

    def check_ports(self, options: AgentOptions) -> OptionsError | None:
        ports = [
            ("proxy server", options.proxy_server_port),
            ("health server", options.health_server_port),
            ("admin server", options.admin_server_port),
        ]
        for name, port in ports:
            if port <= 0:
                return InvalidPortError(f"{name} port {port} must be greater than 0")
        return None

    def check_channel_size(self, options: AgentOptions) -> OptionsError | None:
        if options.xfr_channel_size <= 0:
            return InvalidChannelSizeError(
                f"channel size {options.xfr_channel_size} must be greater than 0"
            )
        return None

    def check_profiling(self, options: AgentOptions) -> OptionsError | None:
        if options.enable_contention_profiling and not options.enable_profiling:
            return InvalidProfilingDependencyError(
                "if --enable-contention-profiling is set, --enable-profiling must also be set"
            )
        return None

    def check_sync_interval(self, options: AgentOptions) -> OptionsError | None:
        if options.sync_interval > options.sync_interval_cap:
            return InvalidIntervalOrderingError(
                f"sync interval {format_duration(options.sync_interval)} must be "
                f"less than sync interval cap {format_duration(options.sync_interval_cap)}"
            )
        return None

    def check_service_account_token(self, options: AgentOptions) -> OptionsError | None:
        return self._missing_path(
            "service account token path", options.service_account_token_path
        )

    def check_agent_identifiers(self, options: AgentOptions) -> OptionsError | None:
        try:
            decode_identifiers(options.agent_identifiers)
        except IdentifierError as e:
            return e
        return None

    def check_kubeconfig(self, options: AgentOptions) -> OptionsError | None:
        return self._missing_path("kubeconfig", options.kubeconfig_path)

    def check_lease_label(self, options: AgentOptions) -> OptionsError | None:
        if not options.count_server_leases:
            return None
        try:
            self.label_parser(options.lease_label)
        except InvalidLabelSelectorError as e:
            return e
        return None

    def check_server_count_source(self, options: AgentOptions) -> OptionsError | None:
        if options.server_count_source not in get_args(ServerCountSource):
            return InvalidServerCountSourceError(
                "--server-count-source must be one of '', 'default', 'max', "
                f"got {options.server_count_source!r}"
            )
        return None


def validate(
    options: AgentOptions,
    *,
    exists: Callable[[str], bool] = os.path.exists,
    label_parser: Callable[[str], object] = parse_labels,
) -> None:
    """Validate options with the given filesystem and label parser.

    Raises:
        OptionsError: The first violated constraint
    """
    OptionsValidator(exists=exists, label_parser=label_parser).validate(options)
