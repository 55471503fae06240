"""Command-line options of the Application propagation controllers."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timedelta

from .constants import APPLICATION_CRD_NAME
from .options import (
    METRICS_HOST,
    _add_leader_election,
    _lease,
    _parse_int,
    _Parser,
    _renew,
    _retry,
    _run,
)


@dataclass
class PropagationOptions:
    """Options of the Application propagation controller."""

    metrics_addr: str = ""
    leader_election_lease_duration: timedelta = field(default_factory=_lease)
    leader_election_renew_deadline: timedelta = field(default_factory=_renew)
    leader_election_retry_period: timedelta = field(default_factory=_retry)
    max_concurrent_reconciles: int = 1

    metrics_port = 8386
    leader_election = False
    leader_election_id = "multicloud-operators-propagation-leader.open-cluster-management.io"
    leader_election_namespace = "kube-system"
    application_crd_name = APPLICATION_CRD_NAME
    crd_check_interval = timedelta(seconds=10)

    @property
    def metrics_bind_address(self) -> str:
        return f"{METRICS_HOST}:{self.metrics_port}"


def _parse(prog: str, argv: Sequence[str] | None) -> PropagationOptions:
    defaults = PropagationOptions()
    parser = _Parser(prog, single_dash=True)
    parser.flag(
        "metrics-addr",
        default=defaults.metrics_addr,
        help="The address the metric endpoint binds to.",
    )
    _add_leader_election(parser, defaults)
    parser.flag(
        "max-concurrent-reconciles",
        type=_parse_int,
        default=defaults.max_concurrent_reconciles,
        help="The maximum concurrent reconciles the controller can run.",
    )
    return PropagationOptions(**_run(parser, argv))


def parse_propagation_options(argv: Sequence[str] | None = None) -> PropagationOptions:
    """Parse the propagation controller's command line; flags take one or two dashes."""
    return _parse("propagation", argv)


def parse_maestropropagation_options(argv: Sequence[str] | None = None) -> PropagationOptions:
    """Parse the Maestro propagation controller's command line; flags take one or two dashes."""
    return _parse("maestropropagation", argv)