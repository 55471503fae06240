"""The GitOpsCluster resource, which imports placed clusters into Argo CD."""

from __future__ import annotations

import ssl
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .schema import APPS_V1BETA1, GroupVersion

TLS_MIN_VERSION = ssl.TLSVersion.TLSv1_2

KIND = "GitOpsCluster"
LIST_KIND = "GitOpsClusterList"

_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _check_type(data: Mapping[str, Any], kind: str) -> None:
    api_version = data.get("apiVersion")
    if api_version and GroupVersion.parse(api_version) != APPS_V1BETA1:
        raise ValueError(f"unexpected apiVersion {api_version!r} for {kind}")
    found_kind = data.get("kind")
    if found_kind and found_kind != kind:
        raise ValueError(f"unexpected kind {found_kind!r}, expected {kind}")


def _format_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_TIME_FORMAT)


def _parse_time(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"invalid timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class ObjectReference:
    """A reference to another object, such as a Placement."""

    kind: str = ""
    namespace: str = ""
    name: str = ""
    uid: str = ""
    api_version: str = ""
    resource_version: str = ""
    field_path: str = ""

    _KEYS = (
        ("kind", "kind"),
        ("namespace", "namespace"),
        ("name", "name"),
        ("uid", "uid"),
        ("api_version", "apiVersion"),
        ("resource_version", "resourceVersion"),
        ("field_path", "fieldPath"),
    )

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in self._KEYS if getattr(self, attr)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ObjectReference:
        data = _mapping(data, "placementRef")
        return cls(**{attr: data.get(key, "") or "" for attr, key in cls._KEYS})


@dataclass
class ArgoServerSpec:
    """Where the Argo CD server is installed."""

    argo_namespace: str = ""
    cluster: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.cluster:
            result["cluster"] = self.cluster
        result["argoNamespace"] = self.argo_namespace
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ArgoServerSpec:
        data = _mapping(data, "argoServer")
        return cls(
            argo_namespace=data.get("argoNamespace", "") or "",
            cluster=data.get("cluster", "") or "",
        )


@dataclass
class GitOpsClusterSpec:
    """Desired state of a GitOpsCluster."""

    argo_server: ArgoServerSpec = field(default_factory=ArgoServerSpec)
    placement_ref: ObjectReference | None = None
    managed_service_account_ref: str = ""
    create_blank_cluster_secrets: bool | None = None
    create_policy_template: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "argoServer": self.argo_server.to_dict(),
            "placementRef": self.placement_ref.to_dict() if self.placement_ref else None,
        }
        if self.managed_service_account_ref:
            result["managedServiceAccountRef"] = self.managed_service_account_ref
        if self.create_blank_cluster_secrets is not None:
            result["createBlankClusterSecrets"] = self.create_blank_cluster_secrets
        if self.create_policy_template is not None:
            result["createPolicyTemplate"] = self.create_policy_template
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GitOpsClusterSpec:
        data = _mapping(data, "spec")
        placement = data.get("placementRef")
        return cls(
            argo_server=ArgoServerSpec.from_dict(data.get("argoServer")),
            placement_ref=ObjectReference.from_dict(placement) if placement is not None else None,
            managed_service_account_ref=data.get("managedServiceAccountRef", "") or "",
            create_blank_cluster_secrets=_optional_bool(data, "createBlankClusterSecrets"),
            create_policy_template=_optional_bool(data, "createPolicyTemplate"),
        )


def _optional_bool(data: Mapping[str, Any], key: str) -> bool | None:
    value = data.get(key)
    if value is None or isinstance(value, bool):
        return value
    raise ValueError(f"{key} must be a boolean, got {type(value).__name__}")


@dataclass
class GitOpsClusterStatus:
    """Observed state of a GitOpsCluster."""

    last_update_time: datetime | None = None
    message: str = ""
    phase: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"lastUpdateTime": _format_time(self.last_update_time)}
        if self.message:
            result["message"] = self.message
        if self.phase:
            result["phase"] = self.phase
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GitOpsClusterStatus:
        data = _mapping(data, "status")
        return cls(
            last_update_time=_parse_time(data.get("lastUpdateTime")),
            message=data.get("message", "") or "",
            phase=data.get("phase", "") or "",
        )


@dataclass
class GitOpsCluster:
    """Uses a placement to import the selected managed clusters into Argo CD."""

    metadata: dict[str, Any] = field(default_factory=dict)
    spec: GitOpsClusterSpec = field(default_factory=GitOpsClusterSpec)
    status: GitOpsClusterStatus = field(default_factory=GitOpsClusterStatus)

    @property
    def name(self) -> str:
        return self.metadata.get("name", "")

    @property
    def namespace(self) -> str:
        return self.metadata.get("namespace", "")

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": APPS_V1BETA1.api_version(),
            "kind": KIND,
            "metadata": dict(self.metadata),
            "spec": self.spec.to_dict(),
            "status": self.status.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GitOpsCluster:
        data = _mapping(data, KIND)
        _check_type(data, KIND)
        return cls(
            metadata=dict(_mapping(data.get("metadata"), "metadata")),
            spec=GitOpsClusterSpec.from_dict(data.get("spec")),
            status=GitOpsClusterStatus.from_dict(data.get("status")),
        )


@dataclass
class GitOpsClusterList:
    """A list of GitOpsClusters."""

    items: list[GitOpsCluster] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": APPS_V1BETA1.api_version(),
            "kind": LIST_KIND,
            "metadata": dict(self.metadata),
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GitOpsClusterList:
        data = _mapping(data, LIST_KIND)
        _check_type(data, LIST_KIND)
        items = data.get("items") or []
        if not isinstance(items, list):
            raise ValueError("items must be a list")
        return cls(
            items=[GitOpsCluster.from_dict(item) for item in items],
            metadata=dict(_mapping(data.get("metadata"), "metadata")),
        )