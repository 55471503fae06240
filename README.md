# maestrogitops

`maestrogitops` implements the pull model for Argo CD Applications across a
fleet of managed clusters:

- It wraps hub Applications that are marked for pulling in a ManifestWork.
- It sends that ManifestWork to the target cluster through Maestro.
- It writes the status each cluster reports back onto the hub Application.

The package has no runtime dependencies. It works on plain dictionaries shaped
like Kubernetes objects. You supply the API access as two objects, both described
as protocols in `maestrogitops.helper`:

- `KubeClient`, for the hub. It has `get(kind, namespace, name)`,
  `list(kind, namespace="")` and `update(obj)`.
- `WorkClient`, for Maestro. It has `get(cluster, name)`, `list(cluster)`,
  `create(cluster, work)`, `patch(cluster, name, patch)` and
  `delete(cluster, name)`.

Either client raises `maestrogitops.helper.NotFoundError` when an object does not
exist. Any object with these methods will do, including an in-memory fake.

## Modules

- `maestrogitops.schema`: `GroupVersion`, `GroupResource` and `GroupVersionKind`.
  `GroupVersion.api_version()` gives the `group/version` string and
  `GroupVersion.resource(name)` qualifies a resource name.
- `maestrogitops.gitopscluster`: the `GitOpsCluster` resource with
  `GitOpsClusterSpec`, `ArgoServerSpec`, `ObjectReference`,
  `GitOpsClusterStatus` and `GitOpsClusterList`. Each has `to_dict` and
  `from_dict`. `from_dict` raises `ValueError` on a wrong `apiVersion` or `kind`,
  and on fields of the wrong type.
- `maestrogitops.appsetreport`: `MulticlusterApplicationSetReport` and its parts,
  which are `AppConditions`, `ClusterCondition`, `Condition`, `ResourceRef`,
  `ReportSummary` and `MulticlusterApplicationSetReportList`. Each has `to_dict`
  and `from_dict`.
- `maestrogitops.constants`: label and annotation keys, the Argo CD finalizer
  name, and `application_gvk()`.
- `maestrogitops.helper`: pure functions that decide whether an Application is
  pulled and that build its ManifestWork. Also `get_service_url`.
- `maestrogitops.propagation`: `ApplicationReconciler`, the event predicates
  `application_create_predicate`, `application_update_predicate` and
  `application_delete_predicate`, and `to_work_patch`.
- `maestrogitops.aggregation`: `MaestroAggregationReconciler`.
- `maestrogitops.options` and `maestrogitops.propagation_options`: command-line
  option parsing for the controllers, and `parse_duration`.

## Marking an Application for pulling

An Application is propagated when it carries both of these:

- the label `apps.open-cluster-management.io/pull-to-ocm-managed-cluster` set to
  a true boolean (`true`, `True`, `TRUE`, `t`, `T` or `1`);
- a non-empty annotation `apps.open-cluster-management.io/ocm-managed-cluster`
  that names the target cluster.

You can add the annotation
`apps.open-cluster-management.io/ocm-managed-cluster-app-namespace` to choose the
Application's namespace on the managed cluster. Without it, the Application's own
namespace is used. If that is empty too, `openshift-gitops` is used.

```python
from maestrogitops.helper import (
    contains_valid_pull_annotation,
    contains_valid_pull_label,
    generate_app_namespace,
    generate_maestro_manifest_work_name,
    generate_manifest_work,
)

app = {
    "apiVersion": "argoproj.io/v1alpha1",
    "kind": "Application",
    "metadata": {
        "name": "guestbook",
        "namespace": "openshift-gitops",
        "labels": {"apps.open-cluster-management.io/pull-to-ocm-managed-cluster": "true"},
        "annotations": {"apps.open-cluster-management.io/ocm-managed-cluster": "cluster1"},
    },
    "spec": {"destination": {"name": "cluster1", "namespace": "guestbook"}},
}

assert contains_valid_pull_label(app["metadata"]["labels"])
assert contains_valid_pull_annotation(app["metadata"]["annotations"])

name = generate_maestro_manifest_work_name("openshift-gitops", "guestbook")
# "openshift-gitops-guestbook"

generate_app_namespace("", {})
# "openshift-gitops"

work = generate_manifest_work(name, "cluster1", app)
```

### The generated ManifestWork

`prepare_application_for_work_payload` builds the Application carried inside the
work. It does not modify its input. In the copy:

- The destination `name` is cleared and `server` is set to
  `https://kubernetes.default.svc`, so the Application always deploys in-cluster.
- The pull label is removed.
- The managed-cluster, app-namespace and `argocd.argoproj.io/skip-reconcile`
  annotations are removed.

The ManifestWork has these settings:

- It requests the Application's `.status` as JSON-path feedback.
- It uses server-side apply.
- It ignores changes made on the managed cluster to `.operation` and to the
  `argocd.argoproj.io/refresh` annotation.
- Its annotations record the hub Application's namespace and name.

An Application may be owned by an ApplicationSet (`argoproj.io/v1alpha1`). The
owner is found by `get_appset_owner_name`. In that case:

- The payload is marked with the ApplicationSet label and annotation.
- The work's labels are replaced by the ApplicationSet label and a SHA-1 hash of
  `namespace/name`, computed by `generate_manifest_work_appset_hash_label_value`.

## Propagating

```python
from maestrogitops.propagation import ApplicationReconciler

reconciler = ApplicationReconciler(client=hub_client, work_client=maestro_client)
reconciler.reconcile("openshift-gitops", "guestbook")
```

`reconcile(namespace, name)` handles one Application:

- If the target managed cluster has the label `local-cluster` set to `true`, the
  Application is skipped. The comparison ignores case.
- If the Application has a deletion timestamp, the reconciler deletes the
  ManifestWork from Maestro if it is there. It then drops the
  `resources-finalizer.argocd.argoproj.io` finalizer and updates the Application.
- Otherwise it checks that the ManagedCluster exists, then creates the
  ManifestWork. If the work already exists, it patches it instead with the JSON
  merge patch from `to_work_patch`.
- After propagation it removes the Application's `operation` field and its
  refresh annotation, and writes the Application back.

Errors from the clients are not caught and propagate to the caller.

## Aggregating status

```python
import threading
from maestrogitops.aggregation import MaestroAggregationReconciler

aggregator = MaestroAggregationReconciler(client=hub_client, work_client=maestro_client, interval=10)
stop = threading.Event()
thread = aggregator.start(stop)
# ...
stop.set()
```

`house_keeping()` goes through every ManagedCluster except those labelled
`local-cluster: "true"`. For each cluster it lists the works in Maestro. For each
work that already has status feedback, it calls `update_argocd_app_status`, which
writes the reported status onto the hub Application. Failures are logged and do
not stop the loop.

`update_argocd_app_status` behaves as follows:

- It raises `ValueError` for missing JSON, an empty Application name or an empty
  Application namespace.
- It updates the Application only when the status has changed.
- It returns whether it made an update.

`start(stop_event)` runs `house_keeping()` in a daemon thread every `interval`
seconds until the event is set, and returns the thread.

## Options

Each parser takes an argument list and returns a dataclass filled with defaults.
With `None`, it reads `sys.argv[1:]`. The parsers are:

- `parse_gitopscluster_options`
- `parse_gitopssyncresc_options`
- `parse_multiclusterstatusaggregation_options`
- `parse_maestroaggregation_options`
- `parse_propagation_options`
- `parse_maestropropagation_options`

Leader election defaults to a 137 s lease duration, a 107 s renew deadline and a
26 s retry period. Durations are read by `parse_duration`, for example `90s`,
`300ms`, `2m30s` or `-1.5h`, and come back as `datetime.timedelta`. Integers
accept `0x`, `0o`, `0b` and leading-zero octal forms. An unknown flag or a bad
value raises `maestrogitops.options.OptionsError`.

The Maestro aggregation and propagation parsers accept flags with one dash or two.
The others accept only two.

```python
from maestrogitops.propagation_options import parse_propagation_options

options = parse_propagation_options(["-max-concurrent-reconciles", "4"])
options.max_concurrent_reconciles  # 4
options.metrics_bind_address       # "0.0.0.0:8386"
```

## What the package does not do

The package is a library of building blocks. It does not include:

- commands or entry points;
- a controller manager or a watch and event loop (the predicates only decide
  whether an event should be handled);
- leader election or a metrics server;
- a Kubernetes or Maestro client.

The option parsers only parse. Running the controllers is left to the code that
supplies the clients.

## Running the tests

Install the package with its `test` extra. Then run `pytest` from the project
root.