"""Pull-model GitOps: wrap Argo CD Applications in ManifestWorks, propagate them through Maestro
and aggregate their status back to the hub."""

__version__ = "0.1.0"

__all__ = [
    "aggregation",
    "appsetreport",
    "constants",
    "gitopscluster",
    "helper",
    "options",
    "propagation",
    "propagation_options",
    "schema",
]