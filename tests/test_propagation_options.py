from datetime import timedelta

import pytest

from maestrogitops.options import OptionsError
from maestrogitops.propagation_options import (
    PropagationOptions,
    parse_maestropropagation_options,
    parse_propagation_options,
)


def test_defaults():
    for options in (parse_propagation_options([]), parse_maestropropagation_options([])):
        assert options.metrics_addr == ""
        assert options.leader_election_lease_duration == timedelta(seconds=137)
        assert options.leader_election_renew_deadline == timedelta(seconds=107)
        assert options.leader_election_retry_period == timedelta(seconds=26)
        assert options.max_concurrent_reconciles == 1


def test_defaults_match_dataclass():
    assert parse_propagation_options([]) == PropagationOptions()
    assert parse_maestropropagation_options([]) == PropagationOptions()


def test_double_dash_flags():
    argv = [
        "--metrics-addr",
        ":9000",
        "--max-concurrent-reconciles",
        "4",
        "--leader-election-lease-duration",
        "90s",
    ]
    for options in (parse_propagation_options(argv), parse_maestropropagation_options(argv)):
        assert options.metrics_addr == ":9000"
        assert options.max_concurrent_reconciles == 4
        assert options.leader_election_lease_duration == timedelta(seconds=90)
        assert options.leader_election_renew_deadline == timedelta(seconds=107)


def test_single_dash_and_equals():
    argv = ["-max-concurrent-reconciles=3", "-leader-election-retry-period=5s"]
    for options in (parse_propagation_options(argv), parse_maestropropagation_options(argv)):
        assert options.max_concurrent_reconciles == 3
        assert options.leader_election_retry_period == timedelta(seconds=5)


def test_invalid_duration_raises():
    argv = ["--leader-election-renew-deadline", "soon"]
    with pytest.raises(OptionsError):
        parse_propagation_options(argv)
    with pytest.raises(OptionsError):
        parse_maestropropagation_options(argv)


def test_invalid_integer_raises():
    argv = ["--max-concurrent-reconciles", "many"]
    with pytest.raises(OptionsError):
        parse_propagation_options(argv)
    with pytest.raises(OptionsError):
        parse_maestropropagation_options(argv)


def test_unknown_flag_raises():
    argv = ["--sync-interval", "10"]
    with pytest.raises(OptionsError):
        parse_propagation_options(argv)
    with pytest.raises(OptionsError):
        parse_maestropropagation_options(argv)


def test_fixed_settings():
    options = PropagationOptions()
    assert options.metrics_bind_address == "0.0.0.0:8386"
    assert options.leader_election_id == (
        "multicloud-operators-propagation-leader.open-cluster-management.io"
    )
    assert options.leader_election_namespace == "kube-system"
    assert options.application_crd_name == "applications.argoproj.io"
    assert options.leader_election is False


def test_parsers_agree():
    argv = ["--metrics-addr", ":8443", "--max-concurrent-reconciles", "2"]
    assert parse_propagation_options(argv) == parse_maestropropagation_options(argv)