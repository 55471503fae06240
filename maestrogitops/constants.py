"""Labels, annotations and identifiers shared by the Application controllers."""

from __future__ import annotations

from .schema import GroupVersionKind

# Application annotation naming the managed cluster the Application is pulled to.
ANNOTATION_KEY_OCM_MANAGED_CLUSTER = "apps.open-cluster-management.io/ocm-managed-cluster"
# Application annotation naming the namespace on the managed cluster.
ANNOTATION_KEY_OCM_MANAGED_CLUSTER_APP_NAMESPACE = (
    "apps.open-cluster-management.io/ocm-managed-cluster-app-namespace"
)
# Application and ManifestWork annotation naming the parent ApplicationSet.
ANNOTATION_KEY_APPSET = "apps.open-cluster-management.io/hosting-applicationset"
# Application annotation that makes Argo CD skip reconciliation.
ANNOTATION_KEY_APP_SKIP_RECONCILE = "argocd.argoproj.io/skip-reconcile"
# Application annotation that asks Argo CD to refresh the Application.
ANNOTATION_KEY_APP_REFRESH = "argocd.argoproj.io/refresh"
# ManifestWork annotations pointing back to the hub Application.
ANNOTATION_KEY_HUB_APPLICATION_NAMESPACE = "apps.open-cluster-management.io/hub-application-namespace"
ANNOTATION_KEY_HUB_APPLICATION_NAME = "apps.open-cluster-management.io/hub-application-name"
# Application and ManifestWork label marking an ApplicationSet parent.
LABEL_KEY_APPSET = "apps.open-cluster-management.io/application-set"
# ManifestWork label holding the sha1 of the ApplicationSet namespace and name.
LABEL_KEY_APPSET_HASH = "apps.open-cluster-management.io/application-set-hash"
# Application label that enables wrapping the Application in a ManifestWork.
LABEL_KEY_PULL = "apps.open-cluster-management.io/pull-to-ocm-managed-cluster"
# Finalizer placed on Applications to finalize their deletion.
RESOURCES_FINALIZER_NAME = "resources-finalizer.argocd.argoproj.io"

LOCAL_CLUSTER_LABEL = "local-cluster"
MAESTRO_SOURCE_ID = "app-work-client"

APPLICATION_GROUP = "argoproj.io"
APPLICATION_VERSION = "v1alpha1"
APPLICATION_KIND = "Application"
APPLICATION_CRD_NAME = "applications.argoproj.io"


def application_gvk() -> GroupVersionKind:
    """Return the group, version and kind of an Argo CD Application."""
    return GroupVersionKind(APPLICATION_GROUP, APPLICATION_VERSION, APPLICATION_KIND)