[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "maestrogitops"
version = "0.1.0"
description = "Pull-model GitOps helpers: wrap Argo CD Applications in ManifestWorks, propagate them through Maestro and aggregate their status back to the hub"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "argocd",
    "gitops",
    "kubernetes",
    "manifestwork",
    "maestro",
    "multicluster",
    "open-cluster-management",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["maestrogitops"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
