"""API group, version, kind and resource identifiers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GroupResource:
    """A resource qualified by its API group."""

    group: str
    resource: str

    def __str__(self) -> str:
        if self.group:
            return f"{self.resource}.{self.group}"
        return self.resource


@dataclass(frozen=True)
class GroupVersion:
    """An API group together with one of its versions."""

    group: str
    version: str

    @classmethod
    def parse(cls, api_version: str) -> GroupVersion:
        """Split an ``apiVersion`` string such as ``group/version``."""
        if not api_version:
            return cls("", "")
        parts = api_version.split("/")
        if len(parts) == 1:
            return cls("", parts[0])
        if len(parts) == 2:
            return cls(parts[0], parts[1])
        raise ValueError(f"unexpected GroupVersion string: {api_version}")

    def resource(self, resource: str) -> GroupResource:
        """Qualify an unqualified resource name with this group."""
        return GroupResource(self.group, resource)

    def api_version(self) -> str:
        """Return the ``apiVersion`` string for this group version."""
        if self.group:
            return f"{self.group}/{self.version}"
        return self.version

    def with_kind(self, kind: str) -> GroupVersionKind:
        return GroupVersionKind(self.group, self.version, kind)

    def __str__(self) -> str:
        return self.api_version()


@dataclass(frozen=True)
class GroupVersionKind:
    """A kind within an API group version."""

    group: str
    version: str
    kind: str

    @property
    def group_version(self) -> GroupVersion:
        return GroupVersion(self.group, self.version)

    @property
    def api_version(self) -> str:
        return self.group_version.api_version()


APPS_V1BETA1 = GroupVersion("apps.open-cluster-management.io", "v1beta1")
APPSETREPORT_V1ALPHA1 = GroupVersion("apps.open-cluster-management.io", "v1alpha1")