import os
from pathlib import Path

from refinement import settings
from refinement.changeset.changeset import Changeset
from refinement.changeset.file_modification import FileModification, ModificationType
from refinement.errors import GitError, RefinementError
from refinement.utils.log_util import log, log_i
from refinement.utils.subprocess_util import SubprocessUtil

# コピー(C)・リネーム(R)は変更前と変更後の2つのパスを持つ
_TWO_PATH_LETTERS = ("C", "R")


class GitDiffSource:
    """gitリポジトリからChangesetを作る(base_revisionとHEADのmerge-baseからの差分)"""

    def __init__(self, repository: str | Path):
        if not isinstance(repository, str | Path):
            raise TypeError(f"must be given a path for repository, got {repository!r}")
        self.repository = os.path.abspath(str(repository))

    def changeset(self, base_revision: str) -> Changeset:
        if not isinstance(base_revision, str):
            raise TypeError(f"must be given a str for base_revision, got {base_revision!r}")

        merge_base = self.git("merge-base", base_revision, "HEAD").strip()
        log_i("merge-base of %s and HEAD is %s", base_revision, merge_base)
        diff = self.git("diff", "--raw", "-z", merge_base)
        modifications = parse_raw_diff(diff, repository=self.repository, base_revision=merge_base, git=self.git)
        log("modifications(len)=%d", len(modifications))
        return Changeset(repository=self.repository, modifications=modifications, description=f"since {base_revision}")

    def git(self, command: str, *args: str) -> str:
        """gitコマンドを実行して標準出力を返す。失敗したらGitError"""
        cmd = [settings.git_executable, command, *args]
        try:
            result = SubprocessUtil.run(cmd, cwd=self.repository, capture_output=True, check=False)
        except OSError as e:
            raise GitError(cmd, -1, str(e)) from e
        if result.returncode != 0:
            raise GitError(cmd, result.returncode, result.stderr or "")
        return result.stdout


def changesets_from_git(repository: str | Path, base_revisions: list[str]) -> list[Changeset]:
    """base_revisionごとにChangesetを作る(複数指定時は全てで変更されたパスだけが変更扱いになる)"""
    source = GitDiffSource(repository)
    return [source.changeset(base_revision) for base_revision in base_revisions]


def parse_raw_diff(diff: str, repository: str, base_revision: str, git=None) -> list[FileModification]:
    """
    `git diff --raw -z` の出力をFileModificationのリストに変換する。

    NUL区切りなのでパスのエスケープを気にしなくてよいが、そのぶん1エントリが複数チャンクに
    分かれる。ヘッダの後にパスが1つ(コピー・リネームの時だけ2つ)続く。
    パス自体が ':' で始まることもあるので、ステータスから読むべきパスの数を決める。
    """
    chunks = diff.split("\0")
    if chunks and chunks[-1] == "":
        chunks.pop()

    modifications = []
    index = 0
    while index < len(chunks):
        header = chunks[index]
        fields = header.split()
        if not header.startswith(":") or len(fields) < 5:
            raise RefinementError(f"unexpected git diff --raw header {header!r}")
        # ステータス(文字 + 類似度%)はヘッダの最後の要素
        change_letter = fields[-1][0]
        path_count = 2 if change_letter in _TWO_PATH_LETTERS else 1
        paths = chunks[index + 1 : index + 1 + path_count]
        if len(paths) != path_count:
            raise RefinementError(f"missing path after git diff --raw header {header!r}")
        index += 1 + path_count

        # 新しいパスはコピー・リネームの時だけ存在する
        prior_path = paths[0] if path_count == 2 else None
        changed_path = paths[-1]

        modifications.append(
            FileModification(
                path=changed_path,
                type=ModificationType.from_git_letter(change_letter),
                prior_path=prior_path,
                contents_reader=_working_tree_reader(repository, changed_path),
                prior_contents_reader=_revision_reader(git, base_revision, prior_path or changed_path),
            )
        )
    return modifications


def _working_tree_reader(repository: str, path: str):
    return lambda: Path(repository, path).read_text(encoding="utf-8")


def _revision_reader(git, base_revision: str, path: str):
    if git is None:
        return None
    return lambda: git("show", f"{base_revision}:{path}")
