import unittest
import unittest.mock
from typing import Any
from unittest.mock import MagicMock, patch

from refinement.changeset.changeset import Changeset
from refinement.changeset.file_modification import FileModification
from refinement.project.model import BuildConfiguration, BuildPhase, FileReference, Project, Target, TargetDependency
from refinement.utils.subprocess_util import SubprocessUtil

REPOSITORY = "/repository"
PROJECT_PATH = "/repository/project.xcodeproj"

MOCK_GIT_RUN = "refinement.changeset.git_diff.SubprocessUtil.run"


class MockManager:
    """複数のモックをmock_nameという名前でアクセスできるようにするクラス"""

    def __init__(self, mode: str = "read"):
        self.mode = mode
        self.mock_dict: dict[str, MagicMock] = {}
        self._init_default_mocks()

    def _init_default_mocks(self):
        # gitの呼び出しを無効化するfixtureを生成
        self._set_mock(
            "fixture_git_run_ok",
            MOCK_GIT_RUN,
            return_value=SubprocessUtil.CompletedProcess(args=[], returncode=0, stdout="", stderr=""),
        )

    def _set_mock(self, mock_name: str, mock_target: str, return_value: Any = ""):
        # モックを生成してreturn_valueを設定
        self.mock_dict[mock_name] = self._parameterized_mock_factory(mock_target, return_value)
        print(f"set_mock= name: {mock_name}, target: {mock_target}, return_value: {return_value}")

    def _parameterized_mock_factory(self, mock_target: str, return_value: Any):
        # モックを生成
        instance = MagicMock()
        instance.return_value = return_value
        patcher = patch(mock_target, instance)
        return patcher.start()

    def _get_mock(self, mock_name: str) -> None | MagicMock:
        # モックを取得
        if mock_name in self.mock_dict:
            return self.mock_dict[mock_name]
        return None

    def get_mock_call_count(self, mock_name: str):
        # モック呼び出しの回数を取得
        return self._get_mock(mock_name).call_count

    def set_mock_return_value(self, mock_target: str = "", mock_alias: str = "", return_value: Any = "") -> None:
        # モックをmock_dictから取り出すときの名前
        mock_name = mock_alias if mock_alias else mock_target
        if not mock_name:
            return

        # リターン値を書き換えるモックを設定
        mock = self._get_mock(mock_name)
        if mock:
            # 既存のモックに値だけ設定
            mock.return_value = return_value
        else:
            # 新規のモックを作成
            self._set_mock(mock_name, mock_target, return_value)

    def set_mock_side_effect(
        self, mock_target: str = "", mock_alias: str = "", side_effect: Any = lambda: None
    ) -> None:
        # サイドエフェクトを持つモックを設定
        mock_name = mock_alias if mock_alias else mock_target
        if mock_name and mock_name not in self.mock_dict:
            self._set_mock(mock_name, mock_target, 0)
        self.mock_dict[mock_name].side_effect = side_effect


class BaseTestCase(unittest.TestCase):
    def setUp(self):
        # gitの呼び出しを無効化するmockをセットアップ
        self.mock_manager = MockManager()

    def tearDown(self):
        # モックを停止
        patch.stopall()

    def check_mock_call_count(self, mock_name: str, expected_count: int):
        # モック呼び出しの回数をチェック
        self.assertEqual(self.mock_manager.get_mock_call_count(mock_name), expected_count, mock_name)

    def set_mock_return_value(self, mock_target: str = "", mock_alias: str = "", return_value: Any = ""):
        # リターン値を書き換えるモックを設定
        self.mock_manager.set_mock_return_value(
            mock_target=mock_target, mock_alias=mock_alias, return_value=return_value
        )

    def set_mock_side_effect(self, mock_target: str = "", mock_alias: str = "", side_effect: Any = lambda: None):
        # サイドエフェクトを持つモックを設定
        self.mock_manager.set_mock_side_effect(mock_target=mock_target, mock_alias=mock_alias, side_effect=side_effect)


# ---- テストデータのビルダー ----


def file_modification(
    path: str,
    type: str = "changed",  # noqa: A002
    prior_path: str | None = None,
    prior_content: Any = None,
    current_content: Any = None,
) -> FileModification:
    return FileModification(
        path=path,
        type=type,
        prior_path=prior_path,
        contents_reader=lambda: current_content,
        prior_contents_reader=lambda: prior_content,
    )


def build_changeset(*modifications: FileModification | str, description: str | None = None) -> Changeset:
    """文字列はtype="changed"の変更として扱う"""
    return Changeset(
        repository=REPOSITORY,
        modifications=[m if isinstance(m, FileModification) else file_modification(m) for m in modifications],
        description=description,
    )


def build_target(
    name: str,
    source_files: tuple[str, ...] = (),
    dependencies: tuple[str, ...] = (),
    build_settings: dict | None = None,
    product_path: str | None = None,
    product_name: str | None = None,
    frameworks: tuple[str, ...] = (),
    build_phases: tuple[BuildPhase, ...] = (),
) -> Target:
    phases = []
    if source_files:
        phases.append(BuildPhase(kind="sources", files=[FileReference(path=path) for path in source_files]))
    if frameworks:
        phases.append(BuildPhase(kind="frameworks", files=[FileReference(path=path) for path in frameworks]))
    phases.extend(build_phases)

    return Target(
        uuid=f"project.xcodeproj_{name}_TARGET_UUID",
        name=name,
        dependencies=[TargetDependency(name=dependency) for dependency in dependencies],
        build_configurations=[
            BuildConfiguration(name=configuration, build_settings=dict(build_settings or {}))
            for configuration in ("Debug", "Release")
        ],
        build_phases=phases,
        product_reference=FileReference(path=product_path, name=product_name) if product_path else None,
    )


def build_project(*targets: Target, path: str = PROJECT_PATH, **kwargs) -> Project:
    return Project(path=path, targets=list(targets), **kwargs)
