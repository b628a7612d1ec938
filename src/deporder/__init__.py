"""Deployment order calculation for interdependent apps."""

__all__ = [
    "ROOT_VERTEX_NAME",
    "AppConfig",
    "Composition",
    "ConfigError",
    "CycleError",
    "Dependencies",
    "DependencyAttributes",
    "DependencyViolation",
    "DeporderError",
    "DotGraph",
    "Graph",
    "ReferentialIntegrityError",
    "ReservedNameError",
    "SnapshotError",
    "TopologicalOrder",
    "UnknownAppError",
    "UnknownDistributionError",
    "export_to_json",
    "find_files",
    "load_app_config",
    "load_composition",
    "load_composition_from_dir",
    "load_composition_from_json",
    "topological_sort",
]

from ._app_config import AppConfig, DependencyAttributes, load_app_config
from ._errors import (
    ConfigError,
    CycleError,
    DependencyViolation,
    DeporderError,
    ReferentialIntegrityError,
    ReservedNameError,
    SnapshotError,
    UnknownAppError,
    UnknownDistributionError,
)
from ._graph import DotGraph, Graph, TopologicalOrder, topological_sort
from ._io import (
    export_to_json,
    find_files,
    load_composition,
    load_composition_from_dir,
    load_composition_from_json,
)
from ._models import ROOT_VERTEX_NAME, Composition, Dependencies
