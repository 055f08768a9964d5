from refinement.project.model import (
    BuildConfiguration,
    BuildPhase,
    FileReference,
    Project,
    Target,
    TargetDependency,
    Workspace,
)
from refinement.project.source import ManifestProjectGraphSource, ProjectGraphSource, StaticProjectGraphSource

__all__ = [
    "BuildConfiguration",
    "BuildPhase",
    "FileReference",
    "ManifestProjectGraphSource",
    "Project",
    "ProjectGraphSource",
    "StaticProjectGraphSource",
    "Target",
    "TargetDependency",
    "Workspace",
]
