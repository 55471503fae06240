"""Helpers for wrapping Argo CD Applications in ManifestWorks sent through Maestro."""

from __future__ import annotations

import copy
import hashlib
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from .constants import (
    ANNOTATION_KEY_APP_SKIP_RECONCILE,
    ANNOTATION_KEY_APPSET,
    ANNOTATION_KEY_HUB_APPLICATION_NAME,
    ANNOTATION_KEY_HUB_APPLICATION_NAMESPACE,
    ANNOTATION_KEY_OCM_MANAGED_CLUSTER,
    ANNOTATION_KEY_OCM_MANAGED_CLUSTER_APP_NAMESPACE,
    LABEL_KEY_APPSET,
    LABEL_KEY_APPSET_HASH,
    LABEL_KEY_PULL,
    application_gvk,
)

logger = logging.getLogger(__name__)

# Address of the Kubernetes API server from inside the cluster.
KUBERNETES_INTERNAL_API_SERVER_ADDR = "https://kubernetes.default.svc"
DEFAULT_APP_NAMESPACE = "openshift-gitops"

MANIFEST_WORK_API_VERSION = "work.open-cluster-management.io/v1"
MANIFEST_WORK_KIND = "ManifestWork"
JSON_PATHS_TYPE = "JSONPaths"
UPDATE_STRATEGY_SERVER_SIDE_APPLY = "ServerSideApply"
IGNORE_FIELDS_ON_SPOKE_CHANGE = "OnSpokeChange"

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


class NotFoundError(LookupError):
    """The requested object does not exist."""


@runtime_checkable
class KubeClient(Protocol):
    """Access to objects on the hub cluster. Missing objects raise NotFoundError."""

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        """Return the object of the given kind; cluster-scoped kinds use an empty namespace."""

    def list(self, kind: str, namespace: str = "") -> list[dict[str, Any]]:
        """Return all objects of the given kind, optionally within one namespace."""

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Write the object back and return the stored version."""


@runtime_checkable
class WorkClient(Protocol):
    """ManifestWork access through Maestro. Missing works raise NotFoundError."""

    def get(self, cluster: str, name: str) -> dict[str, Any]:
        """Return the ManifestWork with this name for the cluster."""

    def list(self, cluster: str) -> list[dict[str, Any]]:
        """Return every ManifestWork for the cluster."""

    def create(self, cluster: str, work: dict[str, Any]) -> dict[str, Any]:
        """Create a ManifestWork for the cluster."""

    def patch(self, cluster: str, name: str, patch: bytes) -> dict[str, Any]:
        """Apply a JSON merge patch to a ManifestWork."""

    def delete(self, cluster: str, name: str) -> None:
        """Delete a ManifestWork."""


def _parse_bool(text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"invalid boolean {text!r}")


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return obj.get("metadata") or {}


def contains_valid_pull_label(labels: Mapping[str, str] | None) -> bool:
    """Return True if the pull label is present and holds a true boolean."""
    if not labels or LABEL_KEY_PULL not in labels:
        return False
    try:
        return _parse_bool(labels[LABEL_KEY_PULL])
    except ValueError:
        return False


def contains_valid_pull_annotation(annotations: Mapping[str, str] | None) -> bool:
    """Return True if the managed cluster annotation names a cluster."""
    if not annotations:
        return False
    return bool(annotations.get(ANNOTATION_KEY_OCM_MANAGED_CLUSTER))


def _join_host_port(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def get_service_url(
    client: KubeClient, service_name: str, service_namespace: str, protocol: str = ""
) -> str:
    """Return the in-cluster DNS URL of a Service's first port."""
    try:
        service = client.get("Service", service_namespace, service_name)
    except Exception as exc:
        raise LookupError(
            f"failed to get service {service_namespace}/{service_name}: {exc}"
        ) from exc

    spec = service.get("spec") or {}
    if not spec.get("clusterIP"):
        raise ValueError(f"service {service_namespace}/{service_name} has no clusterIP")
    ports = spec.get("ports") or []
    if not ports:
        raise ValueError(f"service {service_namespace}/{service_name} has no ports defined")

    service_dns = f"{service_name}.{service_namespace}.svc.cluster.local"
    url = _join_host_port(service_dns, int(ports[0]["port"]))
    if protocol:
        url = f"{protocol}://{url}"
    logger.info("service URL: %s", url)
    return url


def generate_app_namespace(namespace: str, annotations: Mapping[str, str] | None) -> str:
    """Choose the Application namespace: annotation, then own namespace, then the default."""
    custom = (annotations or {}).get(ANNOTATION_KEY_OCM_MANAGED_CLUSTER_APP_NAMESPACE, "")
    if custom:
        return custom
    if namespace:
        return namespace
    return DEFAULT_APP_NAMESPACE


def generate_maestro_manifest_work_name(app_namespace: str, app_name: str) -> str:
    """Return the ManifestWork name for an Application."""
    return f"{app_namespace}-{app_name}"


def generate_manifest_work_appset_hash_label_value(appset_namespace: str, appset_name: str) -> str:
    """Return the hex sha1 of ``namespace/name`` of an ApplicationSet."""
    pre_hash = f"{appset_namespace}/{appset_name}"
    return hashlib.sha1(pre_hash.encode(), usedforsecurity=False).hexdigest()


def get_appset_owner_name(owner_references: Iterable[Mapping[str, Any]] | None) -> str:
    """Return the name of the owning ApplicationSet, or an empty string."""
    for ref in owner_references or ():
        if (
            str(ref.get("apiVersion", "")).casefold() == "argoproj.io/v1alpha1"
            and str(ref.get("kind", "")).casefold() == "applicationset"
        ):
            return ref.get("name", "")
    return ""


def prepare_application_for_work_payload(application: Mapping[str, Any]) -> dict[str, Any]:
    """Build the Application sent to the managed cluster.

    The destination always points at the in-cluster API server and the
    hub-only labels and annotations are dropped. The input is not modified.
    """
    meta = _metadata(application)
    source_annotations = meta.get("annotations") or {}

    new_meta: dict[str, Any] = {
        "namespace": generate_app_namespace(meta.get("namespace", ""), source_annotations)
    }
    if meta.get("name"):
        new_meta["name"] = meta["name"]
    if meta.get("finalizers") is not None:
        new_meta["finalizers"] = list(meta["finalizers"])

    new_app: dict[str, Any] = {
        "apiVersion": application_gvk().api_version,
        "kind": application_gvk().kind,
        "metadata": new_meta,
    }

    operation = application.get("operation")
    if isinstance(operation, dict):
        new_app["operation"] = copy.deepcopy(operation)

    spec = application.get("spec")
    if isinstance(spec, dict):
        new_spec = copy.deepcopy(spec)
        destination = new_spec.get("destination")
        if isinstance(destination, dict):
            destination["name"] = ""
            destination["server"] = KUBERNETES_INTERNAL_API_SERVER_ADDR
        new_app["spec"] = new_spec

    labels = {k: v for k, v in (meta.get("labels") or {}).items() if k != LABEL_KEY_PULL}
    hub_only = {
        ANNOTATION_KEY_OCM_MANAGED_CLUSTER,
        ANNOTATION_KEY_OCM_MANAGED_CLUSTER_APP_NAMESPACE,
        ANNOTATION_KEY_APP_SKIP_RECONCILE,
    }
    annotations = {k: v for k, v in source_annotations.items() if k not in hub_only}

    owner = get_appset_owner_name(meta.get("ownerReferences"))
    if owner:
        labels[LABEL_KEY_APPSET] = "true"
        annotations[ANNOTATION_KEY_APPSET] = f"{meta.get('namespace', '')}/{owner}"

    new_meta["labels"] = labels
    new_meta["annotations"] = annotations
    return new_app


def generate_manifest_work(name: str, namespace: str, app: Mapping[str, Any]) -> dict[str, Any]:
    """Wrap an Application in a ManifestWork with status feedback of its ``.status``."""
    meta = _metadata(app)
    app_namespace = meta.get("namespace", "")
    app_name = meta.get("name", "")

    work_labels = {LABEL_KEY_PULL: "true"}
    work_annotations = {
        ANNOTATION_KEY_HUB_APPLICATION_NAMESPACE: app_namespace,
        ANNOTATION_KEY_HUB_APPLICATION_NAME: app_name,
    }

    owner = get_appset_owner_name(meta.get("ownerReferences"))
    if owner:
        work_labels = {
            LABEL_KEY_APPSET: "true",
            LABEL_KEY_APPSET_HASH: generate_manifest_work_appset_hash_label_value(app_namespace, owner),
        }
        work_annotations[ANNOTATION_KEY_APPSET] = f"{app_namespace}/{owner}"

    application = prepare_application_for_work_payload(app)
    payload_meta = application["metadata"]

    return {
        "apiVersion": MANIFEST_WORK_API_VERSION,
        "kind": MANIFEST_WORK_KIND,
        "metadata": {
            "name": name,
            "namespace": namespace,
            "labels": work_labels,
            "annotations": work_annotations,
        },
        "spec": {
            "workload": {"manifests": [application]},
            "manifestConfigs": [
                {
                    "resourceIdentifier": {
                        "group": application_gvk().group,
                        "resource": "applications",
                        "namespace": payload_meta.get("namespace", ""),
                        "name": payload_meta.get("name", ""),
                    },
                    "feedbackRules": [
                        {
                            "type": JSON_PATHS_TYPE,
                            "jsonPaths": [{"name": "status", "path": ".status"}],
                        }
                    ],
                    "updateStrategy": {
                        "type": UPDATE_STRATEGY_SERVER_SIDE_APPLY,
                        "serverSideApply": {
                            "ignoreFields": [
                                {
                                    "condition": IGNORE_FIELDS_ON_SPOKE_CHANGE,
                                    "jsonPaths": [
                                        ".operation",
                                        '.metadata.annotations["argocd.argoproj.io/refresh"]',
                                    ],
                                }
                            ]
                        },
                    },
                }
            ],
        },
    }