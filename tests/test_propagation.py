import copy
import json

import pytest

from maestrogitops.constants import (
    ANNOTATION_KEY_APP_REFRESH,
    ANNOTATION_KEY_OCM_MANAGED_CLUSTER,
    LABEL_KEY_PULL,
    RESOURCES_FINALIZER_NAME,
)
from maestrogitops.helper import (
    KUBERNETES_INTERNAL_API_SERVER_ADDR,
    NotFoundError,
    generate_maestro_manifest_work_name,
    generate_manifest_work,
)
from maestrogitops.propagation import (
    ApplicationReconciler,
    application_create_predicate,
    application_delete_predicate,
    application_update_predicate,
    to_work_patch,
)


def _key(obj):
    meta = obj["metadata"]
    return obj["kind"], meta.get("namespace", ""), meta["name"]


class FakeKube:
    def __init__(self, objects=()):
        self.store = {_key(o): copy.deepcopy(o) for o in objects}
        self.updates = []

    def get(self, kind, namespace, name):
        try:
            return copy.deepcopy(self.store[(kind, namespace, name)])
        except KeyError:
            raise NotFoundError(f"{kind} {namespace}/{name} not found") from None

    def list(self, kind, namespace=""):
        return [
            copy.deepcopy(o)
            for (k, ns, _), o in self.store.items()
            if k == kind and (not namespace or ns == namespace)
        ]

    def update(self, obj):
        self.store[_key(obj)] = copy.deepcopy(obj)
        self.updates.append(copy.deepcopy(obj))
        return copy.deepcopy(obj)


class FakeWorks:
    def __init__(self, works=None):
        self.works = dict(works or {})
        self.created = []
        self.patched = []
        self.deleted = []

    def get(self, cluster, name):
        try:
            return copy.deepcopy(self.works[(cluster, name)])
        except KeyError:
            raise NotFoundError(name) from None

    def list(self, cluster):
        return [copy.deepcopy(w) for (c, _), w in self.works.items() if c == cluster]

    def create(self, cluster, work):
        self.created.append((cluster, copy.deepcopy(work)))
        self.works[(cluster, work["metadata"]["name"])] = copy.deepcopy(work)
        return work

    def patch(self, cluster, name, patch):
        self.patched.append((cluster, name, patch))
        return self.works[(cluster, name)]

    def delete(self, cluster, name):
        self.deleted.append((cluster, name))
        del self.works[(cluster, name)]


def make_app(cluster="cluster1", pull="true", **extra):
    app = {
        "apiVersion": "argoproj.io/v1alpha1",
        "kind": "Application",
        "metadata": {
            "name": "app",
            "namespace": "ns",
            "labels": {LABEL_KEY_PULL: pull},
            "annotations": {ANNOTATION_KEY_OCM_MANAGED_CLUSTER: cluster},
        },
        "spec": {"destination": {"name": "remote", "server": "https://remote"}},
    }
    app.update(extra)
    return app


def make_cluster(name, local=False):
    labels = {"local-cluster": "true"} if local else {}
    return {"kind": "ManagedCluster", "metadata": {"name": name, "labels": labels}}


def test_update_predicate_accepts_spec_change():
    old = make_app()
    new = make_app()
    new["spec"]["project"] = "other"
    assert application_update_predicate(old, new) is True


def test_update_predicate_ignores_status_only_change():
    old = make_app(status={"health": "a"})
    new = make_app(status={"health": "b"})
    assert application_update_predicate(old, new) is False


def test_update_predicate_requires_pull_label():
    old = make_app(pull="false")
    new = make_app(pull="false")
    new["spec"]["project"] = "other"
    assert application_update_predicate(old, new) is False


def test_create_and_delete_predicates():
    assert application_create_predicate(make_app()) is True
    assert application_delete_predicate(make_app()) is True
    assert application_create_predicate(make_app(pull="false")) is False
    assert application_delete_predicate(make_app(cluster="")) is False


def test_to_work_patch_identical_is_empty():
    work = generate_manifest_work("w", "c", make_app())
    assert json.loads(to_work_patch(work, copy.deepcopy(work))) == {}


def test_to_work_patch_replaces_labels():
    old = {"metadata": {"name": "w", "labels": {"a": "1"}}, "spec": {"x": 1}}
    new = {"metadata": {"name": "w", "labels": {"b": "2"}}, "spec": {"x": 1}}
    patch = json.loads(to_work_patch(old, new))
    assert patch == {"metadata": {"labels": {"a": None, "b": "2"}}}


def test_reconcile_creates_work():
    kube = FakeKube([make_app(operation={"sync": {}}), make_cluster("cluster1")])
    works = FakeWorks()
    ApplicationReconciler(kube, works).reconcile("ns", "app")

    assert len(works.created) == 1
    cluster, work = works.created[0]
    assert cluster == "cluster1"
    assert work["metadata"]["name"] == generate_maestro_manifest_work_name("ns", "app")
    payload = work["spec"]["workload"]["manifests"][0]
    assert payload["spec"]["destination"]["server"] == KUBERNETES_INTERNAL_API_SERVER_ADDR
    assert "operation" not in kube.store[("Application", "ns", "app")]
    assert len(kube.updates) == 1


def test_reconcile_patches_existing_work():
    app = make_app()
    name = generate_maestro_manifest_work_name("ns", "app")
    existing = generate_manifest_work(name, "cluster1", make_app(cluster="cluster1"))
    existing["spec"]["workload"]["manifests"] = []
    kube = FakeKube([app, make_cluster("cluster1")])
    works = FakeWorks({("cluster1", name): existing})
    ApplicationReconciler(kube, works).reconcile("ns", "app")

    assert works.created == []
    assert len(works.patched) == 1
    patch = json.loads(works.patched[0][2])
    assert patch["spec"]["workload"]["manifests"][0]["metadata"]["name"] == "app"
    assert kube.updates == []


def test_reconcile_skips_local_cluster():
    kube = FakeKube([make_app(cluster="local"), make_cluster("local", local=True)])
    works = FakeWorks()
    ApplicationReconciler(kube, works).reconcile("ns", "app")
    assert works.created == [] and works.patched == []


def test_is_local_cluster_missing_is_false():
    reconciler = ApplicationReconciler(FakeKube(), FakeWorks())
    assert reconciler.is_local_cluster("nowhere") is False


def test_reconcile_deletion_removes_work_and_finalizer():
    app = make_app()
    app["metadata"]["deletionTimestamp"] = "2024-01-01T00:00:00Z"
    app["metadata"]["finalizers"] = [RESOURCES_FINALIZER_NAME, "keep"]
    name = generate_maestro_manifest_work_name("ns", "app")
    kube = FakeKube([app, make_cluster("cluster1")])
    works = FakeWorks({("cluster1", name): {"metadata": {"name": name}}})
    ApplicationReconciler(kube, works).reconcile("ns", "app")

    assert works.deleted == [("cluster1", name)]
    assert kube.store[("Application", "ns", "app")]["metadata"]["finalizers"] == ["keep"]


def test_reconcile_deletion_without_work_still_updates():
    app = make_app()
    app["metadata"]["deletionTimestamp"] = "2024-01-01T00:00:00Z"
    app["metadata"]["finalizers"] = [RESOURCES_FINALIZER_NAME]
    kube = FakeKube([app])
    works = FakeWorks()
    ApplicationReconciler(kube, works).reconcile("ns", "app")
    assert works.deleted == []
    assert kube.updates[0]["metadata"]["finalizers"] == []


def test_reconcile_missing_application_raises():
    with pytest.raises(NotFoundError):
        ApplicationReconciler(FakeKube(), FakeWorks()).reconcile("ns", "app")


def test_reconcile_missing_managed_cluster_raises():
    works = FakeWorks()
    with pytest.raises(NotFoundError):
        ApplicationReconciler(FakeKube([make_app()]), works).reconcile("ns", "app")
    assert works.created == []


def test_reconcile_removes_refresh_annotation():
    app = make_app()
    app["metadata"]["annotations"][ANNOTATION_KEY_APP_REFRESH] = "hard"
    kube = FakeKube([app, make_cluster("cluster1")])
    ApplicationReconciler(kube, FakeWorks()).reconcile("ns", "app")
    stored = kube.store[("Application", "ns", "app")]
    assert ANNOTATION_KEY_APP_REFRESH not in stored["metadata"]["annotations"]
    assert len(kube.updates) == 1


def test_delete_manifestwork_missing_is_noop():
    works = FakeWorks()
    ApplicationReconciler(FakeKube(), works).delete_manifestwork_from_maestro("c", "w")
    assert works.deleted == []