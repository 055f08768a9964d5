from refinement.changeset.changeset import Changeset
from refinement.changeset.file_modification import DOES_NOT_EXIST, FileModification, ModificationType
from refinement.changeset.git_diff import GitDiffSource, changesets_from_git, parse_raw_diff

__all__ = [
    "DOES_NOT_EXIST",
    "Changeset",
    "FileModification",
    "GitDiffSource",
    "ModificationType",
    "changesets_from_git",
    "parse_raw_diff",
]
