"""Command-line options of the GitOps controllers."""

from __future__ import annotations

import argparse
import re
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from fractions import Fraction

_NANOSECOND = 1
_MICROSECOND = 1000 * _NANOSECOND
_MILLISECOND = 1000 * _MICROSECOND
_SECOND = 1000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE

_UNITS = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "\u00b5s": _MICROSECOND,
    "\u03bcs": _MICROSECOND,
    "ms": _MILLISECOND,
    "s": _SECOND,
    "m": _MINUTE,
    "h": _HOUR,
}

_COMPONENT = re.compile(r"(\d*)(?:(\.)(\d*))?([^\d.]*)")
_MAX_NANOSECONDS = (1 << 63) - 1

_LEASE_HELP = (
    "The duration that non-leader candidates will wait after observing a leadership "
    "renewal until attempting to acquire leadership of a led but unrenewed leader "
    "slot. This is effectively the maximum duration that a leader can be stopped "
    "before it is replaced by another candidate. This is only applicable if leader "
    "election is enabled."
)
_RENEW_HELP = (
    "The interval between attempts by the acting master to renew a leadership slot "
    "before it stops leading. This must be less than or equal to the lease duration. "
    "This is only applicable if leader election is enabled."
)
_RETRY_HELP = (
    "The duration the clients should wait between attempting acquisition and renewal "
    "of a leadership. This is only applicable if leader election is enabled."
)

METRICS_HOST = "0.0.0.0"


class OptionsError(ValueError):
    """The command line could not be parsed."""


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"300ms"``, ``"-1.5h"`` or ``"2h45m"``."""
    original = text
    if not isinstance(text, str):
        raise OptionsError(f"invalid duration {original!r}")
    negative = False
    if text[:1] in ("+", "-"):
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise OptionsError(f"invalid duration {original!r}")

    total = 0
    pos = 0
    while pos < len(text):
        match = _COMPONENT.match(text, pos)
        whole, dot, frac, unit_name = match.groups()
        frac = frac or ""
        if not whole and not frac:
            raise OptionsError(f"invalid duration {original!r}")
        if not unit_name:
            raise OptionsError(f"missing unit in duration {original!r}")
        unit = _UNITS.get(unit_name)
        if unit is None:
            raise OptionsError(f"unknown unit {unit_name!r} in duration {original!r}")
        value = int(whole or "0") * unit
        if frac:
            value += int(Fraction(int(frac), 10 ** len(frac)) * unit)
        total += value
        if total > _MAX_NANOSECONDS + (1 if negative else 0):
            raise OptionsError(f"invalid duration {original!r}")
        pos = match.end()

    if negative:
        total = -total
    seconds, nanoseconds = divmod(total, _SECOND)
    return timedelta(seconds=seconds, microseconds=nanoseconds / _MICROSECOND)


def _parse_int(text: str) -> int:
    """Parse an integer the way base-prefixed command-line integers are read."""
    body = text[1:] if text[:1] in ("+", "-") else text
    sign = -1 if text[:1] == "-" else 1
    try:
        if body[:2].lower() in ("0x", "0o", "0b"):
            value = int(body, 0)
        elif len(body) > 1 and body.startswith("0"):
            value = int(body, 8)
        else:
            if not body.isdigit():
                raise ValueError(text)
            value = int(body, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer {text!r}") from None
    return sign * value


def _duration_arg(text: str) -> timedelta:
    try:
        return parse_duration(text)
    except OptionsError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


class _Parser(argparse.ArgumentParser):
    def __init__(self, prog: str, single_dash: bool) -> None:
        super().__init__(prog=prog, allow_abbrev=False)
        self._single_dash = single_dash

    def flag(self, name: str, **kwargs) -> None:
        names = [f"--{name}"]
        if self._single_dash:
            names.append(f"-{name}")
        self.add_argument(*names, dest=name.replace("-", "_"), **kwargs)

    def error(self, message: str):
        raise OptionsError(message)


def _add_leader_election(parser: _Parser, defaults) -> None:
    parser.flag(
        "leader-election-lease-duration",
        type=_duration_arg,
        default=defaults.leader_election_lease_duration,
        help=_LEASE_HELP,
    )
    parser.flag(
        "leader-election-renew-deadline",
        type=_duration_arg,
        default=defaults.leader_election_renew_deadline,
        help=_RENEW_HELP,
    )
    parser.flag(
        "leader-election-retry-period",
        type=_duration_arg,
        default=defaults.leader_election_retry_period,
        help=_RETRY_HELP,
    )


def _run(parser: _Parser, argv: Sequence[str] | None) -> dict:
    args = list(sys.argv[1:] if argv is None else argv)
    namespace, extras = parser.parse_known_args(args)
    unknown = [arg for arg in extras if arg.startswith("-") and arg not in ("-", "--")]
    if unknown:
        raise OptionsError(f"unknown flag: {unknown[0]}")
    return vars(namespace)


def _lease() -> timedelta:
    return timedelta(seconds=137)


def _renew() -> timedelta:
    return timedelta(seconds=107)


def _retry() -> timedelta:
    return timedelta(seconds=26)


@dataclass
class GitOpsClusterOptions:
    """Options of the GitOpsCluster controller."""

    metrics_addr: str = ""
    leader_election_lease_duration: timedelta = field(default_factory=_lease)
    leader_election_renew_deadline: timedelta = field(default_factory=_renew)
    leader_election_retry_period: timedelta = field(default_factory=_retry)


@dataclass
class GitOpsSyncRescOptions:
    """Options of the GitOps sync resource controller."""

    metrics_addr: str = ""
    sync_interval: int = 10
    appset_resource_dir: str = "/var/appset-resc"
    leader_election_lease_duration: timedelta = field(default_factory=_lease)
    leader_election_renew_deadline: timedelta = field(default_factory=_renew)
    leader_election_retry_period: timedelta = field(default_factory=_retry)


@dataclass
class PullModelAggregationOptions:
    """Options of the multicluster status aggregation controller."""

    metrics_addr: str = ""
    kubeconfig: str = ""
    appset_resource_dir: str = "/var/appset-resc"
    sync_interval: int = 10
    leader_election_lease_duration: timedelta = field(default_factory=_lease)
    leader_election_renew_deadline: timedelta = field(default_factory=_renew)
    leader_election_retry_period: timedelta = field(default_factory=_retry)


@dataclass
class MaestroAggregationOptions:
    """Options of the Maestro status aggregation controller."""

    metrics_addr: str = ""
    leader_election_lease_duration: timedelta = field(default_factory=_lease)
    leader_election_renew_deadline: timedelta = field(default_factory=_renew)
    leader_election_retry_period: timedelta = field(default_factory=_retry)
    sync_interval: int = 10

    metrics_port = 8388
    leader_election_id = "maestro-aggregation-leader.open-cluster-management.io"
    leader_election_namespace = "kube-system"

    @property
    def metrics_bind_address(self) -> str:
        return f"{METRICS_HOST}:{self.metrics_port}"


def parse_gitopscluster_options(argv: Sequence[str] | None = None) -> GitOpsClusterOptions:
    """Parse the GitOpsCluster controller's command line."""
    defaults = GitOpsClusterOptions()
    parser = _Parser("gitopscluster", single_dash=False)
    parser.flag("metrics-addr", default=defaults.metrics_addr,
                help="The address the metric endpoint binds to.")
    _add_leader_election(parser, defaults)
    return GitOpsClusterOptions(**_run(parser, argv))


def parse_gitopssyncresc_options(argv: Sequence[str] | None = None) -> GitOpsSyncRescOptions:
    """Parse the GitOps sync resource controller's command line."""
    defaults = GitOpsSyncRescOptions()
    parser = _Parser("gitopssyncresc", single_dash=False)
    parser.flag("metrics-addr", default=defaults.metrics_addr,
                help="The address the metric endpoint binds to.")
    parser.flag("sync-interval", type=_parse_int, default=defaults.sync_interval,
                help="The interval for syncing gitops resources in seconds.")
    parser.flag("appset-resource-dir", default=defaults.appset_resource_dir,
                help="The directory for persisting appset resource files.")
    _add_leader_election(parser, defaults)
    return GitOpsSyncRescOptions(**_run(parser, argv))


def parse_multiclusterstatusaggregation_options(
    argv: Sequence[str] | None = None,
) -> PullModelAggregationOptions:
    """Parse the multicluster status aggregation controller's command line."""
    defaults = PullModelAggregationOptions()
    parser = _Parser("multiclusterstatusaggregation", single_dash=False)
    parser.flag("metrics-addr", default=defaults.metrics_addr,
                help="The address the metric endpoint binds to.")
    parser.flag("kubeconfig", default=defaults.kubeconfig,
                help="The kube config that points to a external api server.")
    parser.flag("appset-resource-dir", default=defaults.appset_resource_dir,
                help="The directory for persisting appset resource files.")
    parser.flag("sync-interval", type=_parse_int, default=defaults.sync_interval,
                help="The interval of housekeeping in seconds.")
    _add_leader_election(parser, defaults)
    return PullModelAggregationOptions(**_run(parser, argv))


def parse_maestroaggregation_options(
    argv: Sequence[str] | None = None,
) -> MaestroAggregationOptions:
    """Parse the Maestro aggregation controller's command line; flags take one or two dashes."""
    defaults = MaestroAggregationOptions()
    parser = _Parser("maestroaggregation", single_dash=True)
    parser.flag("metrics-addr", default=defaults.metrics_addr,
                help="The address the metric endpoint binds to.")
    _add_leader_election(parser, defaults)
    parser.flag("sync-interval", type=_parse_int, default=defaults.sync_interval,
                help="The interval of housekeeping in seconds.")
    return MaestroAggregationOptions(**_run(parser, argv))