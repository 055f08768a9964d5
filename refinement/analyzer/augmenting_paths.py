import os
from collections.abc import Iterable

import yaml

from refinement.analyzer.used_path import UsedGlob, UsedPath, UsedPathBase, UsedYamlPath
from refinement.errors import ConfigurationError
from refinement.schema.schema import AugmentingPathEntry
from refinement.utils.file_util import FileUtil
from refinement.utils.log_util import log

# 全ターゲットに適用される定義のターゲット名
WILDCARD_TARGET = "*"


def load_augmenting_paths_yaml_files(yaml_files: Iterable[str], repository: str) -> dict[str, list[dict]]:
    """
    ターゲット名 => 追加の依存パス定義のリスト を読み込む。

    ファイルのパスはリポジトリからの相対パス。同じターゲットの定義は後のファイルの分を後ろに連結する。
    """
    augmenting_paths_by_target: dict[str, list[dict]] = {}
    for yaml_file in yaml_files:
        yaml_path = FileUtil.expand_path(yaml_file, repository)
        try:
            document = FileUtil.read_yaml(yaml_path)
        except OSError as e:
            raise ConfigurationError(f"Unable to read augmenting paths file {yaml_path!r} ({e})") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to load augmenting paths file {yaml_path!r} ({e})") from e

        if document is None:
            continue
        if not isinstance(document, dict):
            raise ConfigurationError(f"augmenting paths file {yaml_path!r} must map target names to lists of paths")
        for target_name, entries in document.items():
            if not isinstance(entries, list):
                raise ConfigurationError(
                    f"augmenting paths for {target_name!r} in {yaml_path!r} must be a list, got {entries!r}"
                )
            augmenting_paths_by_target.setdefault(str(target_name), []).extend(entries)
        log("loaded augmenting paths from %s", yaml_path)
    return augmenting_paths_by_target


def used_path_from_entry(entry: dict, repository: str) -> UsedPathBase:
    augmenting_path = AugmentingPathEntry.from_dict(entry)
    if augmenting_path.glob is not None:
        return UsedGlob(
            glob=FileUtil.expand_path(augmenting_path.glob, repository),
            inclusion_reason=augmenting_path.inclusion_reason,
        )

    path = FileUtil.expand_path(augmenting_path.path, repository)
    if augmenting_path.yaml_keypath is not None:
        return UsedYamlPath(
            path=path,
            yaml_keypath=tuple(augmenting_path.yaml_keypath),
            inclusion_reason=augmenting_path.inclusion_reason,
        )
    return UsedPath(path=path, inclusion_reason=augmenting_path.inclusion_reason)


class AugmentingPaths:
    """ターゲット名 => プロジェクトの外から追加で指定された依存パス"""

    def __init__(self, augmenting_paths_by_target: dict[str, list[dict]], repository: str):
        self.repository = os.path.normpath(str(repository))
        self.used_paths_by_target: dict[str, list[UsedPathBase]] = {
            str(target_name): [used_path_from_entry(entry, self.repository) for entry in entries or []]
            for target_name, entries in augmenting_paths_by_target.items()
        }

    def for_target(self, target_name: str) -> list[UsedPathBase]:
        """ワイルドカード(*)の定義 => ターゲット固有の定義 の順"""
        wildcard_paths = self.used_paths_by_target.get(WILDCARD_TARGET, [])
        if target_name == WILDCARD_TARGET:
            return list(wildcard_paths)
        return wildcard_paths + self.used_paths_by_target.get(target_name, [])
