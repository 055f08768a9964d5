from collections.abc import Iterator

from refinement.analyzer.used_path import UsedPath
from refinement.project.model import BUILD_SETTING_REFERENCE, MAX_BUILD_SETTING_DEPTH, Project, Target
from refinement.utils.file_util import FileUtil

# 値がパスとして扱われるビルド設定
PATH_BUILD_SETTINGS = ("INFOPLIST_FILE", "HEADER_SEARCH_PATHS", "FRAMEWORK_SEARCH_PATHS", "USER_HEADER_SEARCH_PATHS")


def project_each_file_path(project: Project) -> Iterator[UsedPath]:
    """プロジェクト自身が依存しているパス(プロジェクトディレクトリとxcconfig)"""
    yield UsedPath(path=project.path, inclusion_reason="project directory")

    for build_configuration in project.build_configurations:
        reference = build_configuration.base_configuration_reference
        if reference is None:
            continue
        yield UsedPath(
            path=reference.real_path(project.project_dir),
            inclusion_reason=f"base configuration reference for {build_configuration}",
        )


def target_each_file_path(target: Target) -> Iterator[UsedPath]:
    """
    ターゲットが依存しているパスを宣言順に返す。

    1. ビルド構成のxcconfig
    2. 各ビルドフェーズのファイル
    3. シェルスクリプトフェーズの入出力パス(ビルド設定を展開)
    4. パスを値に持つビルド設定(INFOPLIST_FILE, *_SEARCH_PATHS)
    """
    project_dir = target.project.project_dir

    for build_configuration in target.build_configurations:
        reference = build_configuration.base_configuration_reference
        if reference is None:
            continue
        yield UsedPath(
            path=reference.real_path(project_dir),
            inclusion_reason=f"base configuration reference for {build_configuration}",
        )

    for build_phase in target.build_phases:
        for file_reference in build_phase.files:
            yield UsedPath(path=file_reference.real_path(project_dir), inclusion_reason=build_phase.file_inclusion_reason)

    for build_phase in target.shell_script_build_phases:
        for file_type, config_paths in build_phase.script_paths().items():
            for config_path in config_paths:
                if not config_path:
                    continue
                for path in expand_build_settings(target, config_path):
                    yield UsedPath(
                        path=FileUtil.expand_path(path, project_dir),
                        inclusion_reason=f"{build_phase.display_name} build phase {file_type}",
                    )

    for build_setting in PATH_BUILD_SETTINGS:
        for paths in target.resolved_build_setting(build_setting).values():
            if paths is None:
                continue
            for path in paths if isinstance(paths, list) else [paths]:
                if not path:
                    continue
                yield UsedPath(path=FileUtil.expand_path(path, project_dir), inclusion_reason=f"{build_setting} value")


def expand_build_settings(target: Target, value: str, depth: int = 0) -> list[str]:
    """
    value中の$(VAR)/${VAR}を、全てのビルド構成での設定値で展開した候補を返す。

    構成ごとに値が違えば候補は複数になり、どの構成でも未定義なら候補は0件になる。
    """
    match = BUILD_SETTING_REFERENCE.search(value)
    if match is None:
        return [value]
    if depth >= MAX_BUILD_SETTING_DEPTH:
        return []

    key = match.group(1) or match.group(2)
    substitutions: list[str] = []
    for substitution in target.resolved_build_setting(key).values():
        if substitution is None:
            continue
        if isinstance(substitution, list):
            substitution = " ".join(str(item) for item in substitution)
        substitution = str(substitution)
        if substitution not in substitutions:
            substitutions.append(substitution)

    expanded = []
    for substitution in substitutions:
        expanded.extend(expand_build_settings(target, value.replace(match.group(0), substitution), depth + 1))
    return expanded
