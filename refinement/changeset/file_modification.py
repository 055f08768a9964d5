import json
from collections.abc import Callable
from enum import Enum
from typing import Any

import yaml

from refinement.utils.log_util import log_d
from refinement.utils.yaml_differ import YamlDiffer


class ModificationType(str, Enum):
    ADDED = "was added"  # A
    COPIED = "was copied"  # C
    DELETED = "was deleted"  # D
    MODIFIED = "was modified"  # M
    RENAMED = "was renamed"  # R
    TYPE_CHANGED = "changed type"  # T
    UNMERGED = "is unmerged"  # U
    UNKNOWN = "changed in an unknown way"  # X
    DIRECTORY_CONTENTS_CHANGED = "had contents change"  # 子孫の変更から合成したディレクトリの変更

    def __str__(self):
        return self.value

    @staticmethod
    def from_git_letter(letter: str) -> "ModificationType":
        # git diff --raw のステータス文字 => ModificationType
        return _GIT_LETTERS.get(letter, ModificationType.UNKNOWN)


_GIT_LETTERS = {
    "A": ModificationType.ADDED,
    "C": ModificationType.COPIED,
    "D": ModificationType.DELETED,
    "M": ModificationType.MODIFIED,
    "R": ModificationType.RENAMED,
    "T": ModificationType.TYPE_CHANGED,
    "U": ModificationType.UNMERGED,
    "X": ModificationType.UNKNOWN,
}


class _DoesNotExist:
    """読み込めなかったファイル内容を表す番兵"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "DOES NOT EXIST"

    __str__ = __repr__

    def __bool__(self):
        return False


DOES_NOT_EXIST = _DoesNotExist()

ContentsReader = Callable[[], Any]


class FileModification:
    """1つのファイル(またはディレクトリ)への変更"""

    DIRECTORY_CHANGE_TYPE = ModificationType.DIRECTORY_CONTENTS_CHANGED

    def __init__(
        self,
        path: str,
        type: ModificationType | str,  # noqa: A002
        prior_path: str | None = None,
        contents_reader: ContentsReader | None = None,
        prior_contents_reader: ContentsReader | None = None,
    ):
        self.path = str(path)
        self.type = type
        self.prior_path = str(prior_path) if prior_path is not None else None
        self._contents_reader = contents_reader
        self._prior_contents_reader = prior_contents_reader
        self._contents: Any = None
        self._prior_contents: Any = None
        self._cached_yaml: dict[str, Any] = {}

    @property
    def is_directory(self) -> bool:
        return self.type == ModificationType.DIRECTORY_CONTENTS_CHANGED

    def __str__(self):
        if self.is_directory:
            return f"contents of dir `{self.path}` changed"
        message = f"file `{self.path}` {str(self.type)}"
        if self.prior_path:
            message += f" (from {self.prior_path})"
        return message

    def __repr__(self):
        return (
            f"<{type(self).__name__} path={self.path!r} type={str(self.type)!r} prior_path={self.prior_path!r}"
            f" contents={self.contents!r} prior_contents={self.prior_contents!r}>"
        )

    def _key(self) -> tuple:
        return (self.path, str(self.type), self.prior_path)

    def __hash__(self):
        return hash(self._key())

    def __eq__(self, other):
        if not isinstance(other, FileModification):
            return NotImplemented
        return self._key() == other._key()

    @property
    def contents(self) -> Any:
        """現在の内容(読めなければDOES_NOT_EXIST)"""
        if self._contents is None:
            self._contents = self._read(self._contents_reader)
            self._contents_reader = None
        return self._contents

    @property
    def prior_contents(self) -> Any:
        """変更前の内容(読めなければDOES_NOT_EXIST)"""
        if self._prior_contents is None:
            self._prior_contents = self._read(self._prior_contents_reader)
            self._prior_contents_reader = None
        return self._prior_contents

    def _read(self, reader: ContentsReader | None) -> Any:
        if reader is None:
            return DOES_NOT_EXIST
        try:
            value = reader()
        except Exception as e:  # noqa: BLE001
            # 内容の取得失敗は解析全体を止めない
            log_d("failed to read contents of %s: %s", self.path, e)
            return DOES_NOT_EXIST
        return DOES_NOT_EXIST if value is None else value

    def yaml_diff(self, keypath: list) -> str | None:
        """
        keypathの位置の値について、変更前 => 変更後のYAML差分を返す。差分がなければNone。

        keypathが空なら文書全体を比較する。
        """
        prior = self._dig_yaml("prior", self.prior_contents, keypath)
        current = self._dig_yaml("current", self.contents, keypath)

        diff = YamlDiffer.diff(prior, current, key_1="prior_revision", key_2="current_revision")
        if diff is None:
            return None
        return f"{self.path} changed at keypath {json.dumps(list(keypath))}\n" + YamlDiffer.dump(diff)

    def _dig_yaml(self, revision: str, contents: Any, keypath: list) -> Any:
        if revision not in self._cached_yaml:
            self._cached_yaml[revision] = self._load_yaml(contents)
        document = self._cached_yaml[revision]
        if document is DOES_NOT_EXIST:
            # 存在しない・壊れた文書はどのkeypathでも値なしとして扱う
            return None
        for key in keypath:
            if isinstance(document, dict):
                document = document.get(key)
            elif isinstance(document, list) and isinstance(key, int) and -len(document) <= key < len(document):
                document = document[key]
            else:
                return None
        return document

    def _load_yaml(self, contents: Any) -> Any:
        if contents is DOES_NOT_EXIST:
            return DOES_NOT_EXIST
        if isinstance(contents, bytes):
            contents = contents.decode("utf-8", errors="replace")
        try:
            return yaml.safe_load(contents)
        except yaml.YAMLError as e:
            log_d("failed to parse yaml of %s: %s", self.path, e)
            return DOES_NOT_EXIST
