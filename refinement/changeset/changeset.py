import os
from collections.abc import Iterable
from types import MappingProxyType

from refinement.changeset.file_modification import FileModification, ModificationType
from refinement.changeset.glob_pattern import dir_glob_equivalent_patterns, fnmatch_pathname
from refinement.utils.file_util import FileUtil


class Changeset:
    """
    ある過去のリビジョンから現在までのリポジトリ内の変更の集合(生成後は不変)。

    変更されたパスの祖先ディレクトリは、それぞれ「had contents change」の変更として
    自動で追加されるので、ディレクトリ単位の問い合わせもO(1)で解決できる。
    """

    def __init__(self, repository: str, modifications: Iterable[FileModification], description: str | None = None):
        self.repository = os.path.normpath(str(repository))
        self.modifications: tuple[FileModification, ...] = tuple(
            _uniq(self.add_directories(list(modifications)))
        )
        self.description = description

        # パス => 変更 (先に登録されたものを優先。prior_pathはパスを上書きしない)
        modified_paths: dict[str, FileModification] = {}
        for mod in self.modifications:
            modified_paths.setdefault(mod.path, mod)
        for mod in self.modifications:
            if mod.prior_path:
                modified_paths.setdefault(mod.prior_path, mod)

        modified_absolute_paths: dict[str, FileModification] = {}
        for path, mod in modified_paths.items():
            modified_absolute_paths.setdefault(FileUtil.expand_path(path, self.repository), mod)

        self._modified_paths = MappingProxyType(modified_paths)
        self._modified_absolute_paths = MappingProxyType(modified_absolute_paths)

    def __repr__(self):
        return f"<Changeset repository={self.repository!r} description={self.description!r} modifications={len(self.modifications)}>"

    @staticmethod
    def add_directories(modifications: list[FileModification]) -> list[FileModification]:
        """変更された各パスの祖先ディレクトリ(リポジトリルート含む)をディレクトリの変更として追加する"""
        dirs: dict[str, None] = {}  # 挿入順を保持する集合

        def add(path: str) -> None:
            while path not in dirs:
                dirs[path] = None
                path = _dirname(path)

        for mod in modifications:
            add(_dirname(mod.path))
            if mod.prior_path:
                add(_dirname(mod.prior_path))

        return modifications + [
            FileModification(path=f"{d}/", type=ModificationType.DIRECTORY_CONTENTS_CHANGED) for d in dirs
        ]

    def find_modification_for_path(self, absolute_path: str) -> FileModification | None:
        """絶対パスに対応する変更(なければNone)"""
        return self._modified_absolute_paths.get(os.path.normpath(str(absolute_path)))

    def find_modification_for_glob(self, absolute_glob: str) -> FileModification | None:
        """
        絶対パスのglobに一致する変更を1つ返す(なければNone)。

        複数一致しても返すのは最初に見つかった1つだけ(存在確認用)。
        """
        absolute_globs = dir_glob_equivalent_patterns(str(absolute_glob))
        for absolute_path, modification in self._modified_absolute_paths.items():
            if any(fnmatch_pathname(glob, absolute_path) for glob in absolute_globs):
                return modification
        return None

    def find_modification_for_yaml_keypath(
        self, absolute_path: str, keypath: list
    ) -> tuple[FileModification, str] | None:
        """keypathの位置の値が変わっていれば (変更, YAML差分) を返す"""
        file_modification = self.find_modification_for_path(absolute_path)
        if file_modification is None:
            return None

        diff = file_modification.yaml_diff(keypath)
        if diff is None:
            return None
        return file_modification, diff


def _dirname(path: str) -> str:
    dirname = os.path.dirname(path.rstrip("/"))
    return dirname if dirname else "."


def _uniq(modifications: list[FileModification]) -> list[FileModification]:
    return list(dict.fromkeys(modifications))
