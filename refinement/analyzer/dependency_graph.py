import networkx as nx

from refinement.errors import DependencyCycleError
from refinement.project.model import Target
from refinement.utils.log_util import log, log_w


class DependencyGraph:
    """ターゲット間の依存関係(依存元 => 依存先のエッジを持つDAG)"""

    def __init__(self, targets: list[Target], nx_graph: nx.DiGraph, sorted_nodes: list[int]):
        self.targets = targets
        self.nx_graph = nx_graph
        self.sorted_nodes = sorted_nodes
        self._nodes_by_id = {id(target): node for node, target in enumerate(targets)}

    @property
    def sorted_targets(self) -> list[Target]:
        """依存先が依存元より先に並ぶ順序"""
        return [self.targets[node] for node in self.sorted_nodes]

    def dependencies_of(self, target: Target) -> list[Target]:
        """宣言順(明示的な依存 => auto-linkingで推測した依存)の依存先"""
        node = self._nodes_by_id[id(target)]
        return [self.targets[dep] for dep in self.nx_graph.nodes[node]["dependencies"]]


class DependencyGraphBuilder:
    """
    ターゲットの一覧から依存関係グラフを作る。

    明示的な依存(uuid => 名前の順で解決)に加えて、Frameworksフェーズで
    他ターゲットの成果物をリンクしている場合も依存として扱う(auto-linking)。
    """

    def __init__(self, targets: list[Target]):
        self.targets = list(targets)
        self.targets_by_uuid = {target.uuid: node for node, target in enumerate(self.targets) if target.uuid}
        self.targets_by_name = {target.name: node for node, target in enumerate(self.targets)}
        self.targets_by_product_name: dict[str, int] = {}
        for node, target in enumerate(self.targets):
            if target.product_reference is None:
                continue
            for basename in target.product_reference.basename_candidates():
                self.targets_by_product_name[basename] = node

    def build(self) -> DependencyGraph:
        nx_graph = nx.DiGraph()
        for node, target in enumerate(self.targets):
            nx_graph.add_node(node, name=target.name, dependencies=[])
        for node, target in enumerate(self.targets):
            dependencies = self._target_dependencies(node, target)
            nx_graph.nodes[node]["dependencies"] = dependencies
            for dependency in dependencies:
                nx_graph.add_edge(node, dependency)

        if not nx.is_directed_acyclic_graph(nx_graph):
            cycle = nx.find_cycle(nx_graph)
            names = [self.targets[edge[0]].name for edge in cycle] + [self.targets[cycle[-1][1]].name]
            raise DependencyCycleError(names)

        # 深さ優先の帰りがけ順: 依存先 => 依存元。それ以外は元の並び順を保つ
        sorted_nodes = list(nx.dfs_postorder_nodes(nx_graph))
        log("sorted targets=%s", [self.targets[node].name for node in sorted_nodes])
        return DependencyGraph(self.targets, nx_graph, sorted_nodes)

    def _target_dependencies(self, node: int, target: Target) -> list[int]:
        dependencies: list[int] = []

        for target_dependency in target.dependencies:
            dependency = None
            if target_dependency.target_uuid:
                dependency = self.targets_by_uuid.get(target_dependency.target_uuid)
            if dependency is None:
                dependency = self.targets_by_name.get(target_dependency.name)
            if dependency is None:
                log_w("%s: unable to resolve dependency %s", target.name, target_dependency.name)
                continue
            _append_unique(dependencies, dependency)

        # TODO: OTHER_LDFLAGS の -framework / -l 指定からも依存を推測する
        phase = target.frameworks_build_phase
        if phase is not None:
            for file_reference in phase.files:
                dependency = self.targets_by_product_name.get(file_reference.basename_candidates()[0])
                if dependency is not None and dependency != node:
                    _append_unique(dependencies, dependency)

        return dependencies


def _append_unique(items: list[int], item: int) -> None:
    if item not in items:
        items.append(item)
