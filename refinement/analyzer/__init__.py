from refinement.analyzer.annotated_target import AnnotatedTarget
from refinement.analyzer.augmenting_paths import AugmentingPaths
from refinement.analyzer.dependency_graph import DependencyGraph, DependencyGraphBuilder
from refinement.analyzer.used_path import UsedGlob, UsedPath, UsedPathBase, UsedYamlPath

__all__ = [
    "AnnotatedTarget",
    "AugmentingPaths",
    "DependencyGraph",
    "DependencyGraphBuilder",
    "UsedGlob",
    "UsedPath",
    "UsedPathBase",
    "UsedYamlPath",
]
