import os
from typing import Protocol

import yaml
from pydantic import ValidationError

from refinement.errors import ConfigurationError
from refinement.project.model import Project, Workspace
from refinement.utils.file_util import FileUtil
from refinement.utils.log_util import log


class ProjectGraphSource(Protocol):
    def find_projects(self, workspace_path: str) -> list[Project]:
        """
        ワークスペース(またはプロジェクト)のパスから、含まれる全プロジェクトを返す。
        返したプロジェクトは解析中に変更されない。
        """
        ...


class StaticProjectGraphSource:
    """既にメモリ上にあるプロジェクト群をそのまま返す"""

    def __init__(self, projects: list[Project]):
        self.projects = list(projects)

    def find_projects(self, _workspace_path: str) -> list[Project]:
        return self.projects


class ManifestProjectGraphSource:
    """
    プロジェクト構成を記述したYAML/JSONマニフェストからプロジェクト群を読み込む。

    マニフェストの例:

        projects:
          - path: App.xcodeproj
            targets:
              - name: App
                build_phases:
                  - kind: sources
                    files: [{path: App/main.swift}]

    プロジェクトの相対パスはワークスペースのあるディレクトリを基準に解決する。
    """

    def __init__(self, manifest_path: str):
        self.manifest_path = os.path.abspath(manifest_path)

    def find_projects(self, workspace_path: str) -> list[Project]:
        return self.load_workspace(workspace_path).projects

    def load_workspace(self, workspace_path: str) -> Workspace:
        try:
            manifest = FileUtil.read_yaml(self.manifest_path)
        except OSError as e:
            raise ConfigurationError(f"Unable to read a project graph at {self.manifest_path!r} ({e})") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to load project graph at {self.manifest_path!r} ({e})") from e
        if not isinstance(manifest, dict):
            raise ConfigurationError(f"project graph at {self.manifest_path!r} must be a dictionary")

        base_dir = os.path.dirname(os.path.abspath(workspace_path)) if workspace_path else os.path.dirname(
            self.manifest_path
        )
        projects = manifest.get("projects") or []
        for project in projects:
            if isinstance(project, dict) and "path" in project:
                project["path"] = FileUtil.expand_path(project["path"], base_dir)
        try:
            workspace = Workspace(path=workspace_path or None, projects=projects)
        except ValidationError as e:
            raise ConfigurationError(f"invalid project graph at {self.manifest_path!r}:\n{e}") from e
        log("loaded %d projects from %s", len(workspace.projects), self.manifest_path)
        return workspace
