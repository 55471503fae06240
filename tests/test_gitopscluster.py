from datetime import datetime, timezone

import pytest

from maestrogitops.gitopscluster import (
    ArgoServerSpec,
    GitOpsCluster,
    GitOpsClusterList,
    GitOpsClusterSpec,
    GitOpsClusterStatus,
    ObjectReference,
)


def _cluster(name="gitops", namespace="openshift-gitops"):
    return GitOpsCluster(
        metadata={"name": name, "namespace": namespace},
        spec=GitOpsClusterSpec(
            argo_server=ArgoServerSpec(argo_namespace="openshift-gitops", cluster="local-cluster"),
            placement_ref=ObjectReference(
                kind="Placement",
                api_version="cluster.open-cluster-management.io/v1beta1",
                name="all-openshift-clusters",
            ),
            managed_service_account_ref="msa",
            create_blank_cluster_secrets=False,
            create_policy_template=True,
        ),
        status=GitOpsClusterStatus(
            last_update_time=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            message="ok",
            phase="successful",
        ),
    )


def test_type_fields():
    data = _cluster().to_dict()
    assert data["apiVersion"] == "apps.open-cluster-management.io/v1beta1"
    assert data["kind"] == "GitOpsCluster"


def test_round_trip():
    cluster = _cluster()
    assert GitOpsCluster.from_dict(cluster.to_dict()) == cluster


def test_json_keys():
    spec = _cluster().to_dict()["spec"]
    assert spec["argoServer"] == {"cluster": "local-cluster", "argoNamespace": "openshift-gitops"}
    assert spec["placementRef"]["apiVersion"] == "cluster.open-cluster-management.io/v1beta1"
    assert spec["managedServiceAccountRef"] == "msa"
    assert spec["createBlankClusterSecrets"] is False
    assert spec["createPolicyTemplate"] is True


def test_timestamp_format():
    assert _cluster().to_dict()["status"]["lastUpdateTime"] == "2024-01-02T03:04:05Z"


def test_empty_optional_fields_are_omitted():
    data = GitOpsCluster(metadata={"name": "x"}).to_dict()
    assert data["spec"] == {"argoServer": {"argoNamespace": ""}, "placementRef": None}
    assert data["status"] == {"lastUpdateTime": None}


def test_name_and_namespace():
    cluster = _cluster("a", "b")
    assert (cluster.name, cluster.namespace) == ("a", "b")


def test_from_dict_rejects_wrong_kind():
    data = _cluster().to_dict()
    data["kind"] = "Placement"
    with pytest.raises(ValueError):
        GitOpsCluster.from_dict(data)


def test_from_dict_rejects_wrong_api_version():
    data = _cluster().to_dict()
    data["apiVersion"] = "apps.open-cluster-management.io/v1alpha1"
    with pytest.raises(ValueError):
        GitOpsCluster.from_dict(data)


def test_from_dict_rejects_non_boolean():
    data = _cluster().to_dict()
    data["spec"]["createPolicyTemplate"] = "yes"
    with pytest.raises(ValueError):
        GitOpsCluster.from_dict(data)


def test_from_dict_rejects_bad_timestamp():
    data = _cluster().to_dict()
    data["status"]["lastUpdateTime"] = "not a time"
    with pytest.raises(ValueError):
        GitOpsCluster.from_dict(data)


def test_from_dict_rejects_non_mapping_spec():
    with pytest.raises(ValueError):
        GitOpsCluster.from_dict({"metadata": {}, "spec": []})


def test_list_round_trip():
    clusters = GitOpsClusterList(items=[_cluster("a"), _cluster("b")])
    data = clusters.to_dict()
    assert data["kind"] == "GitOpsClusterList"
    restored = GitOpsClusterList.from_dict(data)
    assert restored == clusters
    assert [c.name for c in restored] == ["a", "b"]
    assert len(restored) == 2


def test_list_rejects_non_list_items():
    with pytest.raises(ValueError):
        GitOpsClusterList.from_dict({"items": {"a": 1}})