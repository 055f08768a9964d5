from __future__ import annotations

import os
import re
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr

from refinement.utils.file_util import FileUtil

# $(VAR) または ${VAR} 形式のビルド設定参照
BUILD_SETTING_REFERENCE = re.compile(r"\$(?:\{([_a-zA-Z0-9]+?)\}|\(([_a-zA-Z0-9]+?)\))")

# 値の展開時にたどる参照の最大深さ(自己参照の設定で無限ループしないように)
MAX_BUILD_SETTING_DEPTH = 16

BUILD_PHASE_DISPLAY_NAMES = {
    "sources": "Sources",
    "frameworks": "Frameworks",
    "resources": "Resources",
    "headers": "Headers",
    "copy_files": "CopyFiles",
    "shell_script": "ShellScript",
}


class FileReference(BaseModel):
    path: str = Field(description="プロジェクトディレクトリからの相対パス(または絶対パス)")
    name: str | None = Field(default=None, description="表示名(パスと異なる場合のみ)")

    def real_path(self, project_dir: str) -> str:
        return FileUtil.expand_path(self.path, project_dir)

    def basename_candidates(self) -> list[str]:
        candidates = [os.path.basename(self.path)]
        if self.name:
            candidates.append(os.path.basename(self.name))
        return candidates


class BuildConfiguration(BaseModel):
    name: str
    build_settings: dict[str, Any] = Field(default_factory=dict)
    base_configuration_reference: FileReference | None = Field(default=None, description="xcconfigファイル")

    def __str__(self):
        return self.name


class BuildPhase(BaseModel):
    kind: str = Field(description="sources | frameworks | resources | headers | copy_files | shell_script")
    name: str | None = Field(default=None, description="フェーズ名(主にshell_script用)")
    files: list[FileReference] = Field(default_factory=list)

    # shell_script用
    input_paths: list[str] = Field(default_factory=list)
    output_paths: list[str] = Field(default_factory=list)
    input_file_list_paths: list[str] = Field(default_factory=list)
    output_file_list_paths: list[str] = Field(default_factory=list)

    @property
    def is_shell_script(self) -> bool:
        return self.kind == "shell_script"

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return BUILD_PHASE_DISPLAY_NAMES.get(self.kind, self.kind)

    @property
    def file_inclusion_reason(self) -> str:
        # Sources => "source file", Frameworks => "framework file"
        display_name = self.display_name.lower()
        if display_name.endswith("s"):
            display_name = display_name[:-1]
        return f"{display_name} file"

    def script_paths(self) -> dict[str, list[str]]:
        """種類ごとのスクリプト入出力パス(キーは理由表示用の名前)"""
        return {
            "input file list path": self.input_file_list_paths,
            "output file list path": self.output_file_list_paths,
            "input path": self.input_paths,
            "output path": self.output_paths,
        }


class TargetDependency(BaseModel):
    name: str
    target_uuid: str | None = None


class Target(BaseModel):
    uuid: str = Field(default="", description="プロジェクト内で一意なID(なければ名前で解決)")
    name: str
    dependencies: list[TargetDependency] = Field(default_factory=list)
    build_configurations: list[BuildConfiguration] = Field(default_factory=list)
    build_phases: list[BuildPhase] = Field(default_factory=list)
    product_reference: FileReference | None = Field(default=None, description="ビルド成果物")

    _project: Project | None = PrivateAttr(default=None)

    def __str__(self):
        return self.name

    @property
    def project(self) -> Project:
        if self._project is None:
            raise ValueError(f"target {self.name} does not belong to a project")
        return self._project

    @property
    def frameworks_build_phase(self) -> BuildPhase | None:
        return next((phase for phase in self.build_phases if phase.kind == "frameworks"), None)

    @property
    def shell_script_build_phases(self) -> list[BuildPhase]:
        return [phase for phase in self.build_phases if phase.is_shell_script]

    def resolved_build_setting(self, key: str) -> dict[str, Any]:
        """
        ビルド構成名 => 設定値 を返す。

        ターゲットの設定 => プロジェクトの設定 の順に探し、値の中の$(VAR)は同じ構成の設定で展開する。
        """
        project_configurations = {bc.name: bc for bc in self.project.build_configurations}
        configuration_names = [bc.name for bc in self.build_configurations] or list(project_configurations)
        target_configurations = {bc.name: bc for bc in self.build_configurations}

        resolved = {}
        for configuration_name in configuration_names:
            settings = self._merged_settings(
                target_configurations.get(configuration_name), project_configurations.get(configuration_name)
            )
            settings.setdefault("CONFIGURATION", configuration_name)
            value = settings.get(key)
            resolved[configuration_name] = None if value is None else _expand_value(value, settings, 0)
        return resolved

    def _merged_settings(
        self, target_configuration: BuildConfiguration | None, project_configuration: BuildConfiguration | None
    ) -> dict[str, Any]:
        project_dir = self.project.project_dir
        settings: dict[str, Any] = {
            "SRCROOT": project_dir,
            "PROJECT_DIR": project_dir,
            "SOURCE_ROOT": project_dir,
            "TARGET_NAME": self.name,
            "PRODUCT_NAME": self.name,
            "PROJECT_NAME": os.path.splitext(os.path.basename(self.project.path))[0],
        }
        for configuration in (project_configuration, target_configuration):
            if configuration is None:
                continue
            for setting_key, value in configuration.build_settings.items():
                settings[setting_key] = _inherit(value, settings.get(setting_key))
        return settings


class Project(BaseModel):
    path: str = Field(description="プロジェクトファイル(.xcodeproj等)の絶対パス")
    build_configurations: list[BuildConfiguration] = Field(default_factory=list)
    targets: list[Target] = Field(default_factory=list)

    def model_post_init(self, __context: Any) -> None:
        for target in self.targets:
            target._project = self

    def __str__(self):
        return self.path

    @property
    def project_dir(self) -> str:
        return os.path.dirname(os.path.normpath(self.path))


class Workspace(BaseModel):
    path: str | None = Field(default=None, description="ワークスペースの絶対パス")
    projects: list[Project] = Field(default_factory=list)


def _inherit(value: Any, inherited: Any) -> Any:
    # $(inherited) を上位の値で置き換える
    if isinstance(value, list):
        result = []
        for item in value:
            if item in ("$(inherited)", "${inherited}"):
                if isinstance(inherited, list):
                    result.extend(inherited)
                elif inherited is not None:
                    result.append(inherited)
            else:
                result.append(item)
        return result
    if isinstance(value, str) and ("$(inherited)" in value or "${inherited}" in value):
        replacement = " ".join(inherited) if isinstance(inherited, list) else (inherited or "")
        return value.replace("$(inherited)", replacement).replace("${inherited}", replacement).strip()
    return value


def _expand_value(value: Any, settings: dict[str, Any], depth: int) -> Any:
    if isinstance(value, list):
        return [_expand_value(item, settings, depth) for item in value]
    if not isinstance(value, str) or depth >= MAX_BUILD_SETTING_DEPTH:
        return value

    def replace(match: re.Match) -> str:
        key = match.group(1) or match.group(2)
        if key not in settings:
            return match.group(0)
        substitution = _expand_value(settings[key], settings, depth + 1)
        if isinstance(substitution, list):
            return " ".join(str(item) for item in substitution)
        return str(substitution)

    return BUILD_SETTING_REFERENCE.sub(replace, value)
