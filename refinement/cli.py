import argparse
import logging
import os
import sys

import refinement
from refinement import settings
from refinement.analyzer.analyzer import Analyzer
from refinement.changeset.git_diff import changesets_from_git
from refinement.errors import ConfigurationError, GitError, RefinementError
from refinement.project.source import ManifestProjectGraphSource
from refinement.schema.schema import BuildAction, ChangeLevel, RefinementParams
from refinement.utils.file_util import FileUtil
from refinement.utils.log_util import log, set_level
from refinement.utils.rich_console import (
    console_print_error,
    display_change_report,
    display_info_full,
    display_target_summary,
)


def main(argv: list[str] | None = None) -> None:
    """メイン処理(args前処理、パラメータ設定、解析実行)"""
    log("")
    log("========================================")
    log("||        refinement cli start        ||")
    log("========================================")
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.version:  # バージョン情報表示オプションが指定された場合
        show_version_and_exit()

    if args.command != "git":  # サブコマンドが指定されていない場合
        show_usage_and_exit()

    if not args.base_revision:
        show_error_and_exit("--base-revision を1つ以上指定してください。")

    if args.verbose:
        set_level(logging.DEBUG)
    elif args.print_scheme_changes:
        # スキームの絞り込み内容はINFOで出力される
        set_level(logging.INFO)

    params = RefinementParams()
    params.repository = args.repository
    params.workspace = args.workspace
    params.project_graph = args.project_graph
    params.scheme = args.scheme
    params.output_scheme = args.output_scheme
    params.augmenting_paths_yaml_files = split_comma_separated(args.augmenting_paths_yaml_files)
    params.base_revisions = args.base_revision
    params.change_level = args.change_level
    params.filter_scheme_for_build_action = args.filter_scheme_for_build_action
    params.print_changes = args.print_changes
    params.print_unchanged = args.print_unchanged
    params.print_scheme_changes = args.print_scheme_changes
    params.report_path = args.report_path
    params.show_progress = args.progress
    if settings.is_debug:
        display_info_full(params, title="RefinementParams")

    try:
        main_exec(params)
    except GitError as e:
        console_print_error(e.output or str(e))
        show_error_and_exit(f"gitの実行に失敗しました: {' '.join(e.command)} (exit {e.returncode})")
    except ConfigurationError as e:
        show_error_and_exit(str(e))
    except RefinementError as e:
        show_error_and_exit(f"解析に失敗しました: {e}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="refine",
        description="リポジトリの変更から影響を受けるビルドターゲットを求め、スキームを絞り込みます",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("-v", "--version", action="store_true", help="バージョン情報を表示")

    subparsers = parser.add_subparsers(dest="command")
    git_parser = subparsers.add_parser(
        "git", help="gitの差分から解析します", formatter_class=argparse.RawTextHelpFormatter
    )
    git_parser.add_argument(
        "--base-revision",
        action="append",
        default=[],
        help="差分の基準リビジョン(複数指定すると全ての差分で変更されたものだけを変更扱いにする)",
    )
    git_parser.add_argument("--repository", help="リポジトリのパス", default=".")
    git_parser.add_argument("--workspace", help="ワークスペース(またはプロジェクト)のパス", default="")
    git_parser.add_argument("--project-graph", help="プロジェクト構成を記述したYAML/JSONマニフェストのパス", default="")
    git_parser.add_argument("--scheme", help="絞り込むスキームのパス", default="")
    git_parser.add_argument("--output-scheme", help="絞り込んだスキームの保存先(省略時は上書き)", default="")
    git_parser.add_argument(
        "--augmenting-paths-yaml-files",
        help="追加の依存パスを記述したYAMLファイル(リポジトリ相対、カンマ区切り)",
        default="",
    )
    git_parser.add_argument(
        "--print-changes", action=argparse.BooleanOptionalAction, default=False, help="変更理由を表示"
    )
    git_parser.add_argument(
        "--print-unchanged", action=argparse.BooleanOptionalAction, default=False, help="変更のないターゲットも表示"
    )
    git_parser.add_argument(
        "--print-scheme-changes",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="スキームの絞り込み内容を表示",
    )
    git_parser.add_argument("--change-level", help=ChangeLevel.get_description(), default=settings.change_level)
    git_parser.add_argument(
        "--filter-scheme-for-build-action",
        choices=[str(action) for action in BuildAction],
        help="スキームを絞り込む用途",
        default=settings.build_action,
    )
    git_parser.add_argument("--report-path", help="変更レポートの出力先", default="")
    git_parser.add_argument("--progress", action=argparse.BooleanOptionalAction, default=False, help="進捗を表示")
    git_parser.add_argument("--verbose", action="store_true", help="デバッグログを表示")
    return parser


def main_exec(params: RefinementParams) -> None:
    change_level = ChangeLevel.parse(params.change_level)
    build_action = BuildAction.new(params.filter_scheme_for_build_action)
    repository = os.path.abspath(params.repository)
    analyzer = prepare_analyzer(params, repository)

    if params.print_changes or params.report_path:
        report = analyzer.format_changes(include_unchanged_targets=params.print_unchanged, change_level=change_level)
        if params.print_changes:
            display_change_report(report)
        if params.report_path:
            report_path = FileUtil.write_file(params.report_path, report + "\n" if report else "")
            log("report saved to %s", report_path)

    if params.scheme:
        changed: list[str] = []
        unchanged: list[str] = []

        def each_target(type: str, target_name: str, change_reason: str | None) -> None:  # noqa: A002
            (changed if type == "changed" else unchanged).append(target_name)

        scheme = analyzer.filtered_scheme(
            scheme_path=os.path.abspath(params.scheme),
            change_level=change_level,
            log_changes=params.print_scheme_changes,
            filter_scheme_for_build_action=build_action,
            each_target=each_target,
        )
        scheme_path = scheme.save(os.path.abspath(params.output_scheme) if params.output_scheme else None)
        log("scheme saved to %s", scheme_path)
        display_target_summary(changed, unchanged)


def prepare_analyzer(params: RefinementParams, repository: str) -> Analyzer:
    if not params.project_graph:
        raise ConfigurationError("--project-graph でプロジェクト構成のマニフェストを指定してください。")

    project_graph_source = ManifestProjectGraphSource(params.project_graph)
    changesets = changesets_from_git(repository, params.base_revisions)
    if params.workspace:
        return Analyzer(
            changesets=changesets,
            workspace_path=os.path.abspath(params.workspace),
            project_graph_source=project_graph_source,
            augmenting_paths_yaml_files=params.augmenting_paths_yaml_files,
            show_progress=params.show_progress,
        )
    return Analyzer(
        changesets=changesets,
        projects=project_graph_source.find_projects(""),
        augmenting_paths_yaml_files=params.augmenting_paths_yaml_files,
        show_progress=params.show_progress,
    )


def split_comma_separated(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def show_version_and_exit():
    print(f"refinement version {refinement.__version__}")
    sys.exit(0)


def show_usage_and_exit():
    print("\033[31mエラー: サブコマンドが指定されていません。\033[0m")
    print("\033[92m使用方法: refine git --base-revision <リビジョン> --project-graph <マニフェスト> [オプション]\033[0m")
    print("\033[33m例1:\033[0m refine git --base-revision origin/main --project-graph projects.yml --print-changes")
    print("  説明: origin/mainからの変更で影響を受けるターゲットと、その理由を表示します。")
    print(
        "\033[33m例2:\033[0m refine git --base-revision origin/main --project-graph projects.yml"
        " --scheme App.xcscheme --filter-scheme-for-build-action building"
    )
    print("  説明: 変更のないターゲットをスキームから取り除きます。")
    sys.exit(1)


def show_error_and_exit(message: str):
    print(f"\033[31mエラー: {message}\033[0m")
    sys.exit(1)


if __name__ == "__main__":
    main()
