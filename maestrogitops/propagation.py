"""Propagates Argo CD Applications to managed clusters as ManifestWorks through Maestro."""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .constants import (
    ANNOTATION_KEY_APP_REFRESH,
    ANNOTATION_KEY_OCM_MANAGED_CLUSTER,
    APPLICATION_KIND,
    LOCAL_CLUSTER_LABEL,
    MAESTRO_SOURCE_ID,
    RESOURCES_FINALIZER_NAME,
)
from .helper import (
    KubeClient,
    NotFoundError,
    WorkClient,
    contains_valid_pull_annotation,
    contains_valid_pull_label,
    generate_maestro_manifest_work_name,
    generate_manifest_work,
)

logger = logging.getLogger(__name__)

MANAGED_CLUSTER_KIND = "ManagedCluster"


def _labels(obj: Mapping[str, Any]) -> Mapping[str, str]:
    return (obj.get("metadata") or {}).get("labels") or {}


def _annotations(obj: Mapping[str, Any]) -> Mapping[str, str]:
    return (obj.get("metadata") or {}).get("annotations") or {}


def _is_pull_application(app: Mapping[str, Any]) -> bool:
    return contains_valid_pull_label(_labels(app)) and contains_valid_pull_annotation(
        _annotations(app)
    )


def application_update_predicate(old_app: Mapping[str, Any], new_app: Mapping[str, Any]) -> bool:
    """Accept an update of a pull Application whose content other than status changed."""
    old_rest = {key: value for key, value in old_app.items() if key != "status"}
    new_rest = {key: value for key, value in new_app.items() if key != "status"}
    return _is_pull_application(new_app) and old_rest != new_rest


def application_create_predicate(app: Mapping[str, Any]) -> bool:
    """Accept the creation of an Application marked for pulling to a managed cluster."""
    return _is_pull_application(app)


def application_delete_predicate(app: Mapping[str, Any]) -> bool:
    """Accept the deletion of an Application marked for pulling to a managed cluster."""
    return _is_pull_application(app)


def _merge_patch(old: Any, new: Any) -> Any:
    """Return the JSON merge patch that turns ``old`` into ``new``."""
    if not isinstance(old, dict) or not isinstance(new, dict):
        return new
    patch: dict[str, Any] = {}
    for key, value in new.items():
        if key not in old:
            patch[key] = copy.deepcopy(value)
        elif old[key] != value:
            if isinstance(old[key], dict) and isinstance(value, dict):
                patch[key] = _merge_patch(old[key], value)
            else:
                patch[key] = copy.deepcopy(value)
    for key in old:
        if key not in new:
            patch[key] = None
    return patch


def to_work_patch(old_work: Mapping[str, Any], new_work: Mapping[str, Any]) -> bytes:
    """Return a JSON merge patch carrying the new labels, annotations and spec."""
    target = copy.deepcopy(dict(old_work))
    target_meta = target.setdefault("metadata", {})
    new_meta = new_work.get("metadata") or {}
    for key in ("labels", "annotations"):
        if new_meta.get(key) is not None:
            target_meta[key] = copy.deepcopy(new_meta[key])
        else:
            target_meta.pop(key, None)
    target["spec"] = copy.deepcopy(new_work.get("spec") or {})
    patch = _merge_patch(dict(old_work), target)
    return json.dumps(patch, sort_keys=True).encode()


@dataclass
class ApplicationReconciler:
    """Creates, updates and deletes the ManifestWork that carries an Application."""

    client: KubeClient
    work_client: WorkClient

    def is_local_cluster(self, cluster_name: str) -> bool:
        """Return True if the managed cluster is labelled as the local cluster."""
        try:
            cluster = self.client.get(MANAGED_CLUSTER_KIND, "", cluster_name)
        except Exception as exc:  # a missing cluster is simply not local
            logger.error("Failed to find managed cluster: %s, error: %s", cluster_name, exc)
            return False
        if _labels(cluster).get(LOCAL_CLUSTER_LABEL, "").casefold() == "true":
            logger.info("This is local-cluster: %s", cluster_name)
            return True
        return False

    def reconcile(self, namespace: str, name: str) -> None:
        """Bring the ManifestWork for one Application in line with it."""
        logger.info("reconciling Application...")
        application = copy.deepcopy(self.client.get(APPLICATION_KIND, namespace, name))
        metadata = application.setdefault("metadata", {})

        managed_cluster_name = _annotations(application).get(ANNOTATION_KEY_OCM_MANAGED_CLUSTER, "")
        if self.is_local_cluster(managed_cluster_name):
            logger.info("skipping Application with the local-cluster as Managed Cluster")
            return

        mw_name = generate_maestro_manifest_work_name(
            metadata.get("namespace", ""), metadata.get("name", "")
        )

        if metadata.get("deletionTimestamp") is not None:
            finalizers = metadata.get("finalizers") or []
            if finalizers:
                metadata["finalizers"] = [f for f in finalizers if f != RESOURCES_FINALIZER_NAME]
            self.delete_manifestwork_from_maestro(managed_cluster_name, mw_name)
            self.client.update(application)
            return

        self.client.get(MANAGED_CLUSTER_KIND, "", managed_cluster_name)

        logger.info("generating ManifestWork for Application")
        new_work = generate_manifest_work(mw_name, managed_cluster_name, application)

        try:
            work = self.work_client.get(managed_cluster_name, mw_name)
        except NotFoundError:
            self.work_client.create(managed_cluster_name, new_work)
            logger.info(
                "manifestwork created in maestro. cluster: %s, manifestwork: %s, sourceID: %s",
                managed_cluster_name, mw_name, MAESTRO_SOURCE_ID,
            )
        else:
            self.work_client.patch(managed_cluster_name, mw_name, to_work_patch(work, new_work))
            logger.info(
                "manifestwork updated to maestro. cluster: %s, manifestwork: %s, sourceID: %s",
                managed_cluster_name, mw_name, MAESTRO_SOURCE_ID,
            )

        needs_update = application.pop("operation", None) is not None or "operation" in application
        annotations = metadata.get("annotations")
        if annotations and ANNOTATION_KEY_APP_REFRESH in annotations:
            del annotations[ANNOTATION_KEY_APP_REFRESH]
            needs_update = True

        if needs_update:
            self.client.update(application)

        logger.info("done reconciling Application")

    def delete_manifestwork_from_maestro(self, managed_cluster_name: str, mw_name: str) -> None:
        """Delete the ManifestWork if Maestro still has it."""
        try:
            self.work_client.get(managed_cluster_name, mw_name)
        except NotFoundError:
            logger.info(
                "can't find the manifestwork in the Maestro, manifestwork: %s, cluster: %s",
                mw_name, managed_cluster_name,
            )
            return
        self.work_client.delete(managed_cluster_name, mw_name)
        logger.info(
            "manifestwork deleted from maestro. cluster: %s, manifestwork: %s, sourceID: %s",
            managed_cluster_name, mw_name, MAESTRO_SOURCE_ID,
        )