from maestrogitops import constants
from maestrogitops.schema import GroupVersion


def test_application_gvk():
    gvk = constants.application_gvk()
    assert (gvk.group, gvk.version, gvk.kind) == ("argoproj.io", "v1alpha1", "Application")
    assert gvk.api_version == "argoproj.io/v1alpha1"


def test_application_gvk_group_version():
    assert constants.application_gvk().group_version == GroupVersion("argoproj.io", "v1alpha1")


def test_application_gvk_is_stable():
    first = constants.application_gvk()
    second = constants.application_gvk()
    assert first == second
    assert (second.group, second.kind) == ("argoproj.io", "Application")


def test_argocd_keys_use_application_group():
    group = constants.application_gvk().group
    assert constants.ANNOTATION_KEY_APP_REFRESH == f"argocd.{group}/refresh"
    assert constants.RESOURCES_FINALIZER_NAME == f"resources-finalizer.argocd.{group}"