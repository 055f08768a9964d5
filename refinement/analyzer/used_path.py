import json
import re
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

from refinement.changeset.changeset import Changeset
from refinement.changeset.file_modification import FileModification

_BARE_KEY = re.compile(r"[a-zA-Z0-9_]+")


class UsedPathBase(BaseModel):
    """ターゲットが依存しているもの(パス・glob・YAML内の値)の共通部分"""

    model_config = ConfigDict(frozen=True)

    inclusion_reason: str = Field(description="ターゲットがこれに依存している理由")

    def find_in_changeset(self, changeset: Changeset) -> str | None:
        raise NotImplementedError

    def find_in_changesets(self, changesets: Sequence[Changeset]) -> str | None:
        """
        全てのChangesetで変更されている場合だけ、最後のChangesetでの変更理由を返す。

        途中で変更されて元に戻されたようなパスは変更扱いにしない。
        """
        if not changesets:
            raise ValueError("Must provide at least one changeset")

        explanation = None
        for changeset in changesets:
            explanation = self.find_in_changeset(changeset)
            if explanation is None:
                return None
        return explanation

    def _describe(self, modification: FileModification, changeset: Changeset, location: str) -> str:
        description = f"{location} ({self.inclusion_reason}) {str(modification.type)}"
        if changeset.description:
            description += f" ({changeset.description})"
        return description


class UsedPath(UsedPathBase):
    """ターゲットが依存している絶対パス"""

    path: str

    def find_in_changeset(self, changeset: Changeset) -> str | None:
        modification = changeset.find_modification_for_path(self.path)
        if modification is None:
            return None
        return self._describe(modification, changeset, modification.path)

    def __str__(self):
        return f"{json.dumps(self.path, ensure_ascii=False)} ({self.inclusion_reason})"


class UsedYamlPath(UsedPath):
    """YAMLファイル内の特定のkeypathの値だけに依存している場合"""

    yaml_keypath: tuple[str | int, ...] = ()

    def find_in_changeset(self, changeset: Changeset) -> str | None:
        found = changeset.find_modification_for_yaml_keypath(self.path, list(self.yaml_keypath))
        if found is None:
            return None
        modification, _yaml_diff = found
        return self._describe(modification, changeset, modification.path + self._keypath_suffix())

    def _keypath_suffix(self) -> str:
        if not self.yaml_keypath:
            return ""
        keys = [
            str(key) if _BARE_KEY.fullmatch(str(key)) else json.dumps(key, ensure_ascii=False)
            for key in self.yaml_keypath
        ]
        return " @ " + ".".join(keys)

    def __str__(self):
        keypath = ".".join(str(key) for key in self.yaml_keypath)
        return f"{json.dumps(self.path, ensure_ascii=False)} @ {keypath} ({self.inclusion_reason})"


class UsedGlob(UsedPathBase):
    """ターゲットが依存している絶対パスのglob"""

    glob: str

    def find_in_changeset(self, changeset: Changeset) -> str | None:
        modification = changeset.find_modification_for_glob(self.glob)
        if modification is None:
            return None
        return self._describe(modification, changeset, modification.path)

    def __str__(self):
        return f"{json.dumps(self.glob, ensure_ascii=False)} ({self.inclusion_reason})"
