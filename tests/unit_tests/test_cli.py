import io
import logging
import os
import tempfile
from contextlib import redirect_stdout

from refinement import cli
from refinement.changeset.changeset import Changeset
from refinement.errors import GitError
from refinement.scheme.scheme import Scheme, SchemeEntryKind
from tests.unit_tests.helper import BaseTestCase, file_modification
from tests.unit_tests.test_scheme_filter import SCHEME

MOCK_CHANGESETS_FROM_GIT = "refinement.cli.changesets_from_git"
MOCK_SET_LEVEL = "refinement.cli.set_level"

MANIFEST = """\
projects:
  - path: project.xcodeproj
    targets:
      - name: Foo
        build_phases:
          - kind: sources
            files: [{path: a.swift}]
      - name: Foo-Unit-Tests
        dependencies: [{name: Foo}]
        build_phases:
          - kind: sources
            files: [{path: a_tests.swift}]
"""


class TestCli(BaseTestCase):
    def setUp(self):
        super().setUp()
        self.tmp = tempfile.TemporaryDirectory()
        self.repository = self.tmp.name
        self.manifest_path = os.path.join(self.repository, "projects.yml")
        with open(self.manifest_path, "w", encoding="utf-8") as f:
            f.write(MANIFEST)
        self.scheme_path = os.path.join(self.repository, "Foo.xcscheme")
        with open(self.scheme_path, "w", encoding="utf-8") as f:
            f.write(SCHEME)

    def tearDown(self):
        self.tmp.cleanup()
        super().tearDown()

    def set_changed_files(self, *paths: str):
        changeset = Changeset(self.repository, [file_modification(path) for path in paths], description="since main")
        self.set_mock_return_value(MOCK_CHANGESETS_FROM_GIT, return_value=[changeset])

    def run_cli(self, *args: str) -> str:
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            cli.main(list(args))
        return stdout.getvalue()

    def test_version(self):
        with self.assertRaises(SystemExit) as cm:
            self.run_cli("--version")
        self.assertEqual(cm.exception.code, 0)

    def test_no_command(self):
        with self.assertRaises(SystemExit) as cm:
            self.run_cli()
        self.assertEqual(cm.exception.code, 1)

    def test_no_base_revision(self):
        with self.assertRaises(SystemExit) as cm:
            self.run_cli("git", "--project-graph", self.manifest_path)
        self.assertEqual(cm.exception.code, 1)

    def test_unknown_change_level(self):
        self.set_changed_files("a.swift")
        with self.assertRaises(SystemExit) as cm:
            self.run_cli("git", "--base-revision", "main", "--project-graph", self.manifest_path, "--change-level", "x")
        self.assertEqual(cm.exception.code, 1)

    def test_missing_project_graph(self):
        self.set_changed_files("a.swift")
        with self.assertRaises(SystemExit) as cm:
            self.run_cli("git", "--base-revision", "main")
        self.assertEqual(cm.exception.code, 1)

    def test_git_error(self):
        self.set_mock_side_effect(
            MOCK_CHANGESETS_FROM_GIT, side_effect=GitError(["git", "merge-base"], 128, "fatal: bad revision")
        )
        with self.assertRaises(SystemExit) as cm:
            self.run_cli("git", "--base-revision", "nope", "--project-graph", self.manifest_path)
        self.assertEqual(cm.exception.code, 1)

    def test_report(self):
        self.set_changed_files("a.swift")
        report_path = os.path.join(self.repository, "out", "report.txt")
        self.run_cli(
            "git",
            "--repository",
            self.repository,
            "--base-revision",
            "main",
            "--base-revision",
            "release",
            "--project-graph",
            self.manifest_path,
            "--change-level",
            "itself",
            "--print-unchanged",
            "--report-path",
            report_path,
        )
        with open(report_path, encoding="utf-8") as f:
            report = f.read()
        self.assertEqual(
            report,
            f"{os.path.join(self.repository, 'project.xcodeproj')}:\n"
            "\tFoo: a.swift (source file) changed (since main)\n"
            "\tFoo-Unit-Tests: did not change\n",
        )
        mock = self.mock_manager.mock_dict[MOCK_CHANGESETS_FROM_GIT]
        self.assertEqual(mock.call_args.args[1], ["main", "release"])

    def test_filter_scheme(self):
        self.set_changed_files("a_tests.swift")
        output_scheme = os.path.join(self.repository, "filtered", "Foo.xcscheme")
        self.run_cli(
            "git",
            "--repository",
            self.repository,
            "--base-revision",
            "main",
            "--project-graph",
            self.manifest_path,
            "--scheme",
            self.scheme_path,
            "--output-scheme",
            output_scheme,
            "--filter-scheme-for-build-action",
            "building",
        )
        scheme = Scheme.load(output_scheme)
        self.assertEqual([e.target_name for e in scheme.entries(SchemeEntryKind.BUILD)], [])
        self.assertEqual([e.target_name for e in scheme.entries(SchemeEntryKind.TEST)], ["Foo-Unit-Tests"])
        # 元のスキームはそのまま
        self.assertEqual(len(Scheme.load(self.scheme_path).entries()), 2)

    def test_split_comma_separated(self):
        self.assertEqual(cli.split_comma_separated("a.yml, b.yml,,"), ["a.yml", "b.yml"])
        self.assertEqual(cli.split_comma_separated(""), [])

    def test_log_level(self):
        self.set_changed_files("a.swift")
        args = ["git", "--base-revision", "main", "--project-graph", self.manifest_path, "--no-print-changes"]
        self.set_mock_return_value(MOCK_SET_LEVEL, return_value=None)

        self.run_cli(*args)
        self.check_mock_call_count(MOCK_SET_LEVEL, 0)

        self.run_cli(*args, "--print-scheme-changes")
        self.assertEqual(self.mock_manager.mock_dict[MOCK_SET_LEVEL].call_args.args, (logging.INFO,))

        self.run_cli(*args, "--print-scheme-changes", "--verbose")
        self.assertEqual(self.mock_manager.mock_dict[MOCK_SET_LEVEL].call_args.args, (logging.DEBUG,))
        self.check_mock_call_count(MOCK_SET_LEVEL, 2)
