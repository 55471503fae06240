"""Copies Application status reported through Maestro back onto the hub Applications."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any

from .constants import APPLICATION_KIND, LOCAL_CLUSTER_LABEL
from .helper import KubeClient, WorkClient

logger = logging.getLogger(__name__)

MANAGED_CLUSTER_KIND = "ManagedCluster"


def _status_feedback(work: dict[str, Any]) -> tuple[str, str, str | None] | None:
    """Return name, namespace and raw JSON status of the first manifest, if reported."""
    manifests = ((work.get("status") or {}).get("resourceStatus") or {}).get("manifests") or []
    if not manifests:
        return None
    first = manifests[0] or {}
    values = (first.get("statusFeedback") or {}).get("values") or []
    if not values:
        return None
    meta = first.get("resourceMeta") or {}
    raw = ((values[0] or {}).get("fieldValue") or {}).get("jsonRaw")
    return meta.get("name", ""), meta.get("namespace", ""), raw


@dataclass
class MaestroAggregationReconciler:
    """Periodically aggregates Argo CD Application status from every managed cluster."""

    client: KubeClient
    work_client: WorkClient
    interval: float = 10

    def start(self, stop_event: threading.Event) -> threading.Thread:
        """Run housekeeping every ``interval`` seconds in a thread until the event is set."""

        def loop() -> None:
            while not stop_event.is_set():
                self.house_keeping()
                stop_event.wait(self.interval)

        thread = threading.Thread(target=loop, name="maestro-aggregation", daemon=True)
        thread.start()
        return thread

    def house_keeping(self) -> None:
        """Update the status of every propagated Application on every remote cluster."""
        logger.info("Start aggregating the ArgoCD application status...")
        try:
            clusters = self.get_all_managed_cluster_names()
        except Exception as exc:
            logger.info("failed to fetch managed clusters, err: %s", exc)
            return
        for cluster in clusters:
            self.update_all_application_status_per_cluster(cluster)
        logger.info("Finished aggregating the ArgoCD application status...")

    def update_all_application_status_per_cluster(self, managed_cluster_name: str) -> None:
        """Copy the status feedback of each ManifestWork of one cluster to its Application."""
        try:
            works = self.work_client.list(managed_cluster_name)
        except Exception as exc:
            logger.info(
                "failed to list manifestwork from maestro, cluster: %s, err: %s",
                managed_cluster_name, exc,
            )
            return

        for work in works:
            feedback = _status_feedback(work)
            if feedback is None:
                logger.info("The app hasn't gotten its status feedback yet, waiting for next cycle...")
                continue
            app_name, app_namespace, app_status = feedback
            logger.info(
                "appName: %s, appNamespace: %s, cluster: %s",
                app_name, app_namespace, managed_cluster_name,
            )
            try:
                self.update_argocd_app_status(app_status, app_name, app_namespace)
            except Exception as exc:
                logger.info(
                    "failed to update argocd status. err: %s, appName: %s, appNamespace: %s, cluster: %s",
                    exc, app_name, app_namespace, managed_cluster_name,
                )

    def update_argocd_app_status(
        self, json_data: str | None, app_name: str, app_namespace: str
    ) -> bool:
        """Set the Application status from raw JSON; return True if it changed."""
        if json_data is None:
            raise ValueError("jsonData is nil")
        if json_data == "":
            raise ValueError("jsonData is empty")
        if not app_name:
            raise ValueError("appName is empty")
        if not app_namespace:
            raise ValueError("appNamespace is empty")

        app = self.client.get(APPLICATION_KIND, app_namespace, app_name)

        old_status = app.get("status")
        if not isinstance(old_status, dict):
            old_status = {}

        new_status = json.loads(json_data)
        if new_status is None:
            new_status = {}
        if not isinstance(new_status, dict):
            raise ValueError(f"status must be a JSON object, got {type(new_status).__name__}")

        if old_status == new_status:
            return False

        app["status"] = new_status
        self.client.update(app)
        logger.info("successfully updated Application status. app: %s/%s", app_namespace, app_name)
        return True

    def get_all_managed_cluster_names(self) -> list[str]:
        """Return the names of all managed clusters except the local cluster."""
        names = []
        for cluster in self.client.list(MANAGED_CLUSTER_KIND):
            meta = cluster.get("metadata") or {}
            if (meta.get("labels") or {}).get(LOCAL_CLUSTER_LABEL) == "true":
                continue
            names.append(meta.get("name", ""))
        return names