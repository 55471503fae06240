"""The MulticlusterApplicationSetReport resource and its parts."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .schema import APPSETREPORT_V1ALPHA1, GroupVersion

KIND = "MulticlusterApplicationSetReport"
LIST_KIND = "MulticlusterApplicationSetReportList"


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _list(value: Any, what: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{what} must be a list, got {type(value).__name__}")
    return value


def _string(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _check_type(data: Mapping[str, Any], kind: str) -> None:
    api_version = data.get("apiVersion")
    if api_version and GroupVersion.parse(api_version) != APPSETREPORT_V1ALPHA1:
        raise ValueError(f"unexpected apiVersion {api_version!r} for {kind}")
    found_kind = data.get("kind")
    if found_kind and found_kind != kind:
        raise ValueError(f"unexpected kind {found_kind!r}, expected {kind}")


class _StringFields:
    """Serialisation for records made only of optional string fields."""

    _KEYS: tuple[tuple[str, str], ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in self._KEYS if getattr(self, attr)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        data = _mapping(data, cls.__name__)
        return cls(**{attr: _string(data, key) for attr, key in cls._KEYS})


@dataclass
class ResourceRef(_StringFields):
    """A resource deployed by the application."""

    api_version: str = ""
    kind: str = ""
    name: str = ""
    namespace: str = ""

    _KEYS = (
        ("api_version", "apiVersion"),
        ("kind", "kind"),
        ("name", "name"),
        ("namespace", "namespace"),
    )


@dataclass
class Condition(_StringFields):
    """A warning or error reported for an application."""

    type: str = ""
    message: str = ""

    _KEYS = (("type", "type"), ("message", "message"))


@dataclass
class ClusterCondition:
    """The state and conditions of an application on one cluster."""

    cluster: str = ""
    sync_status: str = ""
    health_status: str = ""
    operation_state_started_at: str = ""
    operation_state_phase: str = ""
    sync_revision: str = ""
    app: str = ""
    conditions: list[Condition] = field(default_factory=list)

    _KEYS = (
        ("cluster", "cluster"),
        ("sync_status", "syncStatus"),
        ("health_status", "healthStatus"),
        ("operation_state_started_at", "operationStateStartedAt"),
        ("operation_state_phase", "operationStatePhase"),
        ("sync_revision", "syncRevision"),
        ("app", "app"),
    )

    def to_dict(self) -> dict[str, Any]:
        result = {key: getattr(self, attr) for attr, key in self._KEYS if getattr(self, attr)}
        if self.conditions:
            result["conditions"] = [condition.to_dict() for condition in self.conditions]
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ClusterCondition:
        data = _mapping(data, "clusterCondition")
        values = {attr: _string(data, key) for attr, key in cls._KEYS}
        conditions = [Condition.from_dict(item) for item in _list(data.get("conditions"), "conditions")]
        return cls(conditions=conditions, **values)


@dataclass
class ReportSummary:
    """Counts of clusters in each state; every count is kept as a string."""

    synced: str = ""
    not_synced: str = ""
    healthy: str = ""
    not_healthy: str = ""
    in_progress: str = ""
    clusters: str = ""

    _KEYS = (
        ("synced", "synced"),
        ("not_synced", "notSynced"),
        ("healthy", "healthy"),
        ("not_healthy", "notHealthy"),
        ("in_progress", "inProgress"),
        ("clusters", "clusters"),
    )

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in self._KEYS}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ReportSummary:
        data = _mapping(data, "summary")
        return cls(**{attr: _string(data, key) for attr, key in cls._KEYS})


@dataclass
class AppConditions:
    """Conditions of an application across all the clusters it is deployed to."""

    resources: list[ResourceRef] = field(default_factory=list)
    cluster_conditions: list[ClusterCondition] = field(default_factory=list)
    summary: ReportSummary = field(default_factory=ReportSummary)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.resources:
            result["resources"] = [resource.to_dict() for resource in self.resources]
        if self.cluster_conditions:
            result["clusterConditions"] = [item.to_dict() for item in self.cluster_conditions]
        result["summary"] = self.summary.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AppConditions:
        data = _mapping(data, "statuses")
        return cls(
            resources=[ResourceRef.from_dict(item) for item in _list(data.get("resources"), "resources")],
            cluster_conditions=[
                ClusterCondition.from_dict(item)
                for item in _list(data.get("clusterConditions"), "clusterConditions")
            ],
            summary=ReportSummary.from_dict(data.get("summary")),
        )


@dataclass
class MulticlusterApplicationSetReport:
    """Report on the status of an application on every managed cluster."""

    metadata: dict[str, Any] = field(default_factory=dict)
    statuses: AppConditions = field(default_factory=AppConditions)

    @property
    def name(self) -> str:
        return self.metadata.get("name", "")

    @property
    def namespace(self) -> str:
        return self.metadata.get("namespace", "")

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": APPSETREPORT_V1ALPHA1.api_version(),
            "kind": KIND,
            "metadata": dict(self.metadata),
            "statuses": self.statuses.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MulticlusterApplicationSetReport:
        data = _mapping(data, KIND)
        _check_type(data, KIND)
        return cls(
            metadata=dict(_mapping(data.get("metadata"), "metadata")),
            statuses=AppConditions.from_dict(data.get("statuses")),
        )


@dataclass
class MulticlusterApplicationSetReportList:
    """A list of MulticlusterApplicationSetReports."""

    items: list[MulticlusterApplicationSetReport] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": APPSETREPORT_V1ALPHA1.api_version(),
            "kind": LIST_KIND,
            "metadata": dict(self.metadata),
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MulticlusterApplicationSetReportList:
        data = _mapping(data, LIST_KIND)
        _check_type(data, LIST_KIND)
        return cls(
            items=[
                MulticlusterApplicationSetReport.from_dict(item)
                for item in _list(data.get("items"), "items")
            ],
            metadata=dict(_mapping(data.get("metadata"), "metadata")),
        )