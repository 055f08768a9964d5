from __future__ import annotations

from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from refinement import settings
from refinement.errors import ConfigurationError, UnknownChangeLevelError


class ChangeLevelKind(str, Enum):
    ITSELF = "itself"  # ターゲット自身の変更のみ
    AT_MOST_N_AWAY = "at_most_n_away"  # n段以内の依存先の変更まで
    FULL_TRANSITIVE = "full_transitive"  # 推移的な全ての依存先の変更

    def __str__(self):
        return self.value


class ChangeLevel(BaseModel):
    """ターゲットが変更されたとみなす範囲(伝播レベル)"""

    model_config = ConfigDict(frozen=True)

    kind: ChangeLevelKind = Field(default=ChangeLevelKind.FULL_TRANSITIVE, description="伝播レベルの種類")
    distance: int = Field(default=0, description="AT_MOST_N_AWAYの時の最大段数")

    @field_validator("distance")
    @classmethod
    def _check_distance(cls, distance: int) -> int:
        if distance < 0:
            raise ValueError(f"level must be positive, not {distance}")
        return distance

    def __str__(self):
        if self.kind == ChangeLevelKind.AT_MOST_N_AWAY:
            return f"{self.kind}({self.distance})"
        return str(self.kind)

    @staticmethod
    def itself() -> ChangeLevel:
        return ChangeLevel(kind=ChangeLevelKind.ITSELF)

    @staticmethod
    def full_transitive() -> ChangeLevel:
        return ChangeLevel(kind=ChangeLevelKind.FULL_TRANSITIVE)

    @staticmethod
    def at_most_n_away(distance: int) -> ChangeLevel:
        return ChangeLevel(kind=ChangeLevelKind.AT_MOST_N_AWAY, distance=distance)

    def closer(self) -> ChangeLevel:
        # 依存先を1段たどった時のレベル
        return ChangeLevel.at_most_n_away(self.distance - 1)

    @staticmethod
    def parse(token: str | ChangeLevel) -> ChangeLevel:
        """CLI等の文字列(full-transitive | itself | 整数)からChangeLevelを作る"""
        if isinstance(token, ChangeLevel):
            return token
        normalized = str(token).strip().replace("_", "-")
        if normalized == "full-transitive":
            return ChangeLevel.full_transitive()
        if normalized == "itself":
            return ChangeLevel.itself()
        if normalized.isdigit():
            return ChangeLevel.at_most_n_away(int(normalized))
        raise UnknownChangeLevelError(str(token))

    @staticmethod
    def get_description() -> str:
        return "\n".join(
            [
                "ターゲットが変更されたとみなす依存関係の範囲を指定します。",
                "  full-transitive: 推移的な全ての依存先の変更を含む",
                "  itself: ターゲット自身の変更のみ",
                "  N(整数): N段以内の依存先の変更を含む",
            ]
        )


class BuildAction(str, Enum):
    BUILDING = "building"  # ビルド用: BuildActionEntryとTestableReferenceの両方を絞り込む
    TESTING = "testing"  # テスト用: TestableReferenceだけを絞り込む

    def __str__(self):
        return self.value

    @staticmethod
    def new(build_action: str | BuildAction) -> BuildAction:
        if isinstance(build_action, BuildAction):
            return build_action
        for action in BuildAction:
            if action.value == str(build_action):
                return action
        raise ConfigurationError(
            "The supported values for the `filter_scheme_for_build_action` parameter are: "
            f"{[str(action) for action in BuildAction]}. Given: {build_action!r}."
        )


class RefinementParams(BaseModel):
    repository: str = Field(default=".", description="リポジトリのパス")
    workspace: str = Field(default="", description="ワークスペース(またはプロジェクト)のパス")
    project_graph: str = Field(default="", description="プロジェクト構成を記述したYAML/JSONマニフェストのパス")
    scheme: str = Field(default="", description="絞り込むスキームのパス")
    output_scheme: str = Field(default="", description="絞り込んだスキームの保存先(省略時は上書き)")
    augmenting_paths_yaml_files: list[str] = Field(
        default_factory=list, description="追加の依存パスを記述したYAMLファイル(リポジトリ相対)"
    )
    base_revisions: list[str] = Field(default_factory=list, description="差分の基準リビジョン")
    change_level: str = Field(default=settings.change_level, description="伝播レベル")
    filter_scheme_for_build_action: str = Field(default=settings.build_action, description="スキームを絞り込む用途")
    print_changes: bool = Field(default=False, description="変更理由を表示する")
    print_unchanged: bool = Field(default=False, description="変更のないターゲットも表示する")
    print_scheme_changes: bool = Field(default=False, description="スキームの絞り込み内容を表示する")
    report_path: str = Field(default="", description="変更レポートの出力先")
    show_progress: bool = Field(default=False, description="進捗バーを表示する")


class AugmentingPathEntry(BaseModel):
    """追加の依存パス定義1件(path / path+yaml_keypath / glob のいずれか)"""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    inclusion_reason: str
    path: str | None = None
    glob: str | None = None
    yaml_keypath: list[str | int] | None = Field(default=None, alias="keypath")

    ACCEPTED_KEY_SETS: ClassVar[tuple[tuple[str, ...], ...]] = (
        ("inclusion_reason", "path"),
        ("inclusion_reason", "path", "yaml_keypath"),
        ("glob", "inclusion_reason"),
    )

    @staticmethod
    def from_dict(entry: dict) -> AugmentingPathEntry:
        if not isinstance(entry, dict):
            raise ConfigurationError(f"augmenting paths entry must be a dictionary, got {entry!r}")
        keys = tuple(sorted("yaml_keypath" if key == "keypath" else str(key) for key in entry))
        if keys not in AugmentingPathEntry.ACCEPTED_KEY_SETS:
            raise ConfigurationError(
                f"unhandled set of keys in augmenting paths dictionary entry: {sorted(str(k) for k in entry)}"
            )
        normalized = {("yaml_keypath" if key == "keypath" else key): value for key, value in entry.items()}
        try:
            return AugmentingPathEntry.model_validate(normalized)
        except ValueError as e:
            raise ConfigurationError(f"invalid augmenting paths dictionary entry {entry!r}: {e}") from e
