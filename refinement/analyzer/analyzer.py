from collections.abc import Iterable, Sequence

from tqdm import tqdm

from refinement.analyzer.annotated_target import AnnotatedTarget
from refinement.analyzer.augmenting_paths import AugmentingPaths, load_augmenting_paths_yaml_files
from refinement.analyzer.dependency_graph import DependencyGraphBuilder
from refinement.analyzer.target_paths import project_each_file_path, target_each_file_path
from refinement.analyzer.used_path import UsedPath, UsedPathBase
from refinement.changeset.changeset import Changeset
from refinement.errors import ConfigurationError
from refinement.project.model import Project, Target
from refinement.project.source import ProjectGraphSource
from refinement.scheme.scheme import Scheme
from refinement.scheme.scheme_filter import EachTargetCallback, SchemeFilter
from refinement.schema.schema import BuildAction, ChangeLevel
from refinement.utils.log_util import log, log_inout_debug


class Analyzer:
    """
    リポジトリの変更が、ワークスペース内の各プロジェクトのターゲットにどう影響するかを解析する。

    ターゲットの直接の変更理由は次の順で最初に見つかったもの:
    1. プロジェクト(なければワークスペース)自体の変更
    2. 追加の依存パス(ワイルドカード * の定義 => ターゲット固有の定義)
    3. ターゲットが参照しているパス
    """

    def __init__(
        self,
        changesets: Sequence[Changeset],
        workspace_path: str | None = None,
        projects: Sequence[Project] | None = None,
        project_graph_source: ProjectGraphSource | None = None,
        augmenting_paths_yaml_files: Sequence[str] | None = None,
        augmenting_paths_by_target: dict[str, list[dict]] | None = None,
        show_progress: bool = False,
    ):
        if not changesets:
            raise ConfigurationError("Must provide at least one changeset")
        if workspace_path and projects is not None:
            raise ConfigurationError("Can only specify one of workspace_path and projects")
        if not workspace_path and projects is None:
            raise ConfigurationError("Must specify one of workspace_path and projects")
        if workspace_path and project_graph_source is None:
            raise ConfigurationError("A project graph source is required to find the projects in a workspace")
        if augmenting_paths_yaml_files is not None and augmenting_paths_by_target is not None:
            raise ConfigurationError(
                "Can only specify one of augmenting_paths_yaml_files and augmenting_paths_by_target"
            )

        self.changesets = list(changesets)
        self.workspace_path = workspace_path or None
        self.project_graph_source = project_graph_source
        self.augmenting_paths_yaml_files = list(augmenting_paths_yaml_files or [])
        self.show_progress = show_progress

        self._projects = list(projects) if projects is not None else None
        self._augmenting_paths_by_target = augmenting_paths_by_target
        self._augmenting_paths: AugmentingPaths | None = None
        self._annotated_targets: list[AnnotatedTarget] | None = None

    @property
    def repository(self) -> str:
        return self.changesets[0].repository

    @property
    def projects(self) -> list[Project]:
        if self._projects is None:
            self._projects = list(self.project_graph_source.find_projects(self.workspace_path))
            log("found %d projects in %s", len(self._projects), self.workspace_path)
        return self._projects

    @property
    def augmenting_paths(self) -> AugmentingPaths:
        if self._augmenting_paths is None:
            augmenting_paths_by_target = self._augmenting_paths_by_target
            if augmenting_paths_by_target is None:
                augmenting_paths_by_target = load_augmenting_paths_yaml_files(
                    self.augmenting_paths_yaml_files, self.repository
                )
            self._augmenting_paths = AugmentingPaths(augmenting_paths_by_target, self.repository)
        return self._augmenting_paths

    def annotate_targets(self) -> list[AnnotatedTarget]:
        """変更理由を付けた全ターゲット(依存先 => 依存元の順)"""
        if self._annotated_targets is None:
            self._annotated_targets = self._build_annotated_targets()
        return self._annotated_targets

    def change_reasons(self, change_level: ChangeLevel | None = None) -> dict[str, str | None]:
        """ターゲット名 => 変更理由(変更がなければNone)"""
        change_level = change_level or ChangeLevel.full_transitive()
        # 依存先から順に求めてメモを埋めるので、長い依存の連鎖でも再帰が深くならない
        return {
            annotated_target.name: annotated_target.change_reason(change_level)
            for annotated_target in self.annotate_targets()
        }

    def format_changes(self, include_unchanged_targets: bool = False, change_level: ChangeLevel | None = None) -> str:
        """プロジェクトごと・ターゲット名順に変更理由を並べたレポート"""
        change_level = change_level or ChangeLevel.full_transitive()
        by_project: dict[str, list[AnnotatedTarget]] = {}
        for annotated_target in self.annotate_targets():
            # 依存先から順にメモを埋める
            annotated_target.change_reason(change_level)
            by_project.setdefault(annotated_target.target.project.path, []).append(annotated_target)

        sections = []
        for project_path in sorted(by_project):
            lines = []
            for annotated_target in sorted(by_project[project_path], key=lambda at: at.name):
                change_reason = annotated_target.change_reason(change_level)
                if change_reason is None and not include_unchanged_targets:
                    continue
                lines.append(f"\t{annotated_target.name}: {change_reason or 'did not change'}")
            if lines:
                sections.append(f"{project_path}:\n" + "\n".join(lines))
        return "\n".join(sections)

    def filtered_scheme(
        self,
        scheme_path: str,
        change_level: ChangeLevel | None = None,
        filter_when_scheme_has_changed: bool = False,
        log_changes: bool = False,
        filter_scheme_for_build_action: BuildAction | str = BuildAction.TESTING,
        each_target: EachTargetCallback | None = None,
    ) -> Scheme:
        """変更のないターゲットを取り除いたスキーム(ファイルには書き込まない)"""
        change_level = change_level or ChangeLevel.full_transitive()
        scheme_filter = SchemeFilter(
            changesets=self.changesets,
            change_reasons=lambda: self.change_reasons(change_level),
            filter_scheme_for_build_action=filter_scheme_for_build_action,
            filter_when_scheme_has_changed=filter_when_scheme_has_changed,
            log_changes=log_changes,
            each_target=each_target,
        )
        return scheme_filter.filter(Scheme.load(scheme_path))

    @log_inout_debug
    def _build_annotated_targets(self) -> list[AnnotatedTarget]:
        workspace_change = self.find_workspace_modification_in_changesets()
        project_changes = {
            id(project): self.find_project_modification_in_changesets(project) or workspace_change
            for project in self.projects
        }

        targets = [target for project in self.projects for target in project.targets]
        graph = DependencyGraphBuilder(targets).build()

        sorted_targets = graph.sorted_targets
        if self.show_progress:
            sorted_targets = tqdm(sorted_targets, desc="Annotating targets", unit="target")

        annotated_by_id: dict[int, AnnotatedTarget] = {}
        for target in sorted_targets:
            change_reason = project_changes[id(target.project)] or self.find_target_modification_in_changesets(target)
            annotated_by_id[id(target)] = AnnotatedTarget(
                target=target,
                change_reason=change_reason,
                dependencies=[annotated_by_id[id(dependency)] for dependency in graph.dependencies_of(target)],
            )
        return [annotated_by_id[id(target)] for target in graph.sorted_targets]

    def find_workspace_modification_in_changesets(self) -> str | None:
        if not self.workspace_path:
            return None
        return UsedPath(path=self.workspace_path, inclusion_reason="workspace directory").find_in_changesets(
            self.changesets
        )

    def find_project_modification_in_changesets(self, project: Project) -> str | None:
        return self._first_change(project_each_file_path(project))

    def find_target_modification_in_changesets(self, target: Target) -> str | None:
        return self._first_change(self.augmenting_paths.for_target(target.name)) or self._first_change(
            target_each_file_path(target)
        )

    def _first_change(self, used_paths: Iterable[UsedPathBase]) -> str | None:
        for used_path in used_paths:
            reason = used_path.find_in_changesets(self.changesets)
            if reason is not None:
                return reason
        return None
