import xml.etree.ElementTree as ET
from enum import Enum

from refinement.errors import ConfigurationError
from refinement.utils.file_util import FileUtil

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


class SchemeEntryKind(str, Enum):
    BUILD = "BuildActionEntry"  # ビルドアクションの項目
    TEST = "TestableReference"  # テストアクションの項目

    def __str__(self):
        return self.value


class SchemeEntry:
    """スキーム内でターゲットを参照している項目1件"""

    def __init__(self, kind: SchemeEntryKind, target_name: str, element: ET.Element):
        self.kind = kind
        self.target_name = target_name
        self.element = element

    def __repr__(self):
        return f"<{type(self).__name__} kind={str(self.kind)} target_name={self.target_name!r}>"

    @property
    def build_for_testing(self) -> bool:
        return self.element.get("buildForTesting", "YES") == "YES"


class Scheme:
    """
    ビルド・テストの実行計画(Xcodeのスキーム形式のXML)。

    項目はBuildableReferenceのBlueprintNameでターゲットを参照する。
    """

    def __init__(self, root: ET.Element, path: str | None = None):
        self.root = root
        self.path = path

    @staticmethod
    def load(path: str) -> "Scheme":
        try:
            return Scheme(ET.fromstring(FileUtil.read_text(path)), path=path)
        except OSError as e:
            raise ConfigurationError(f"Unable to read scheme at {path!r} ({e})") from e
        except ET.ParseError as e:
            raise ConfigurationError(f"Failed to parse scheme at {path!r} ({e})") from e

    @staticmethod
    def from_string(contents: str, path: str | None = None) -> "Scheme":
        return Scheme(ET.fromstring(contents), path=path)

    def entries(self, kind: SchemeEntryKind | None = None) -> list[SchemeEntry]:
        """文書順の項目(kindを指定するとその種類だけ)"""
        kinds = [kind] if kind is not None else list(SchemeEntryKind)
        entries = []
        for element in self.root.iter():
            entry_kind = next((k for k in kinds if element.tag == k.value), None)
            if entry_kind is None:
                continue
            for reference in element.findall("BuildableReference"):
                entries.append(SchemeEntry(entry_kind, reference.get("BlueprintName", ""), element))
        return entries

    def remove(self, entry: SchemeEntry) -> bool:
        """項目を削除する。既に削除済みならFalse"""
        parent = self._parent_of(entry.element)
        if parent is None:
            return False

        children = list(parent)
        index = children.index(entry.element)
        # 閉じタグ前のインデントを保つ
        if index == len(children) - 1:
            if index > 0:
                children[index - 1].tail = entry.element.tail
            else:
                parent.text = entry.element.tail
        parent.remove(entry.element)
        return True

    def set_build_for_testing(self, entry: SchemeEntry, build_for_testing: bool) -> None:
        entry.element.set("buildForTesting", "YES" if build_for_testing else "NO")

    def to_string(self) -> str:
        return XML_DECLARATION + ET.tostring(self.root, encoding="unicode") + "\n"

    def save(self, path: str | None = None) -> str:
        path = path or self.path
        if not path:
            raise ConfigurationError("No path to save the scheme to")
        FileUtil.write_file(path, self.to_string())
        return path

    def _parent_of(self, element: ET.Element) -> ET.Element | None:
        for parent in self.root.iter():
            if element in list(parent):
                return parent
        return None
