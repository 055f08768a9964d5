import os
import tempfile

from refinement.changeset.file_modification import ModificationType
from refinement.changeset.git_diff import GitDiffSource, changesets_from_git, parse_raw_diff
from refinement.errors import GitError, RefinementError
from refinement.utils.subprocess_util import SubprocessUtil
from tests.unit_tests.helper import MOCK_GIT_RUN, BaseTestCase

RAW_DIFF = "\0".join(
    [
        ":100644 100644 1111111 0000000 M",
        "modified.swift",
        ":000000 100644 0000000 0000000 A",
        "added.swift",
        ":100644 100644 2222222 0000000 R087",
        "old name.swift",
        "new name.swift",
        ":100644 000000 3333333 0000000 D",
        "deleted.swift",
        "",
    ]
)


def completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> SubprocessUtil.CompletedProcess:
    return SubprocessUtil.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestParseRawDiff(BaseTestCase):
    def test_parse(self):
        modifications = parse_raw_diff(RAW_DIFF, repository="/repo", base_revision="abc")
        self.assertEqual(
            [(m.path, m.type, m.prior_path) for m in modifications],
            [
                ("modified.swift", ModificationType.MODIFIED, None),
                ("added.swift", ModificationType.ADDED, None),
                ("new name.swift", ModificationType.RENAMED, "old name.swift"),
                ("deleted.swift", ModificationType.DELETED, None),
            ],
        )

    def test_parse_empty(self):
        self.assertEqual(parse_raw_diff("", repository="/repo", base_revision="abc"), [])

    def test_parse_paths_starting_with_colon(self):
        diff = "\0".join(
            [
                ":100644 100644 abc def M",
                ":weird.txt",
                ":100644 100644 abc def R100",
                ":old.txt",
                ":new.txt",
                ":000000 100644 0000000 abc A",
                "added.txt",
                "",
            ]
        )
        modifications = parse_raw_diff(diff, repository="/repo", base_revision="abc")
        self.assertEqual(
            [(m.path, m.type, m.prior_path) for m in modifications],
            [
                (":weird.txt", ModificationType.MODIFIED, None),
                (":new.txt", ModificationType.RENAMED, ":old.txt"),
                ("added.txt", ModificationType.ADDED, None),
            ],
        )

    def test_parse_truncated(self):
        with self.assertRaises(RefinementError):
            parse_raw_diff(":100644 100644 abc def R100\0old.txt\0", repository="/repo", base_revision="abc")
        with self.assertRaises(RefinementError):
            parse_raw_diff("modified.swift\0", repository="/repo", base_revision="abc")

    def test_contents_readers(self):
        with tempfile.TemporaryDirectory() as repository:
            with open(os.path.join(repository, "modified.swift"), "w", encoding="utf-8") as f:
                f.write("let a = 1\n")

            shown = []

            def git(*args):
                shown.append(args)
                return "let a = 0\n"

            modifications = parse_raw_diff(RAW_DIFF, repository=repository, base_revision="abc", git=git)
            self.assertEqual(modifications[0].contents, "let a = 1\n")
            self.assertEqual(modifications[0].prior_contents, "let a = 0\n")
            self.assertEqual(shown, [("show", "abc:modified.swift")])

            # 削除されたファイルは作業ツリーに存在しない
            self.assertEqual(str(modifications[3].contents), "DOES NOT EXIST")

            self.assertEqual(modifications[2].prior_contents, "let a = 0\n")
            self.assertEqual(shown[-1], ("show", "abc:old name.swift"))


class TestGitDiffSource(BaseTestCase):
    def test_changeset(self):
        def run(args, cwd=None, **kwargs):
            if args[1] == "merge-base":
                return completed("abcdef\n")
            if args[1] == "diff":
                return completed(RAW_DIFF)
            return completed("")

        self.set_mock_side_effect(MOCK_GIT_RUN, "fixture_git_run_ok", side_effect=run)

        changeset = GitDiffSource("/repo").changeset("origin/main")
        self.assertEqual(changeset.repository, "/repo")
        self.assertEqual(changeset.description, "since origin/main")
        self.assertIsNotNone(changeset.find_modification_for_path("/repo/added.swift"))
        self.assertIsNotNone(changeset.find_modification_for_path("/repo/old name.swift"))

        calls = self.mock_manager.mock_dict["fixture_git_run_ok"].call_args_list
        self.assertEqual(calls[0].args[0][1:], ["merge-base", "origin/main", "HEAD"])
        self.assertEqual(calls[1].args[0][1:], ["diff", "--raw", "-z", "abcdef"])
        self.assertEqual(calls[0].kwargs["cwd"], "/repo")

    def test_git_error(self):
        self.set_mock_return_value(
            MOCK_GIT_RUN,
            "fixture_git_run_ok",
            return_value=completed(returncode=128, stderr="fatal: Not a valid object name nope"),
        )

        with self.assertRaises(GitError) as cm:
            GitDiffSource("/repo").changeset("nope")
        self.assertEqual(cm.exception.returncode, 128)
        self.assertIn("merge-base nope HEAD", str(cm.exception))
        self.assertIn("fatal: Not a valid object name nope", str(cm.exception))

    def test_git_error_output_is_kept(self):
        stderr = "error: cannot lock ref (pid 4242 still running)\n"
        self.set_mock_return_value(
            MOCK_GIT_RUN, "fixture_git_run_ok", return_value=completed(returncode=1, stderr=stderr)
        )

        with self.assertRaises(GitError) as cm:
            GitDiffSource("/repo").changeset("main")
        self.assertEqual(cm.exception.output, stderr)

    def test_git_not_found(self):
        self.set_mock_side_effect(MOCK_GIT_RUN, "fixture_git_run_ok", side_effect=FileNotFoundError("git"))

        with self.assertRaises(GitError):
            GitDiffSource("/repo").changeset("main")

    def test_argument_types(self):
        with self.assertRaises(TypeError):
            GitDiffSource(None)
        with self.assertRaises(TypeError):
            GitDiffSource("/repo").changeset(1)

    def test_changesets_from_git(self):
        def run(args, cwd=None, **kwargs):
            if args[1] == "merge-base":
                return completed(f"{args[2]}-base\n")
            return completed(":100644 100644 1111111 0000000 M\0a.swift\0")

        self.set_mock_side_effect(MOCK_GIT_RUN, "fixture_git_run_ok", side_effect=run)

        changesets = changesets_from_git("/repo", ["main", "release"])
        self.assertEqual([c.description for c in changesets], ["since main", "since release"])
