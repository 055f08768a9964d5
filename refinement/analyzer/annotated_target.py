from __future__ import annotations

from refinement.project.model import Target
from refinement.schema.schema import ChangeLevel, ChangeLevelKind

_NOT_COMPUTED = object()


class AnnotatedTarget:
    """
    直接の変更理由と依存先を付けたターゲット。

    依存先は先に作られている前提(依存先 => 依存元の順に生成する)なので、
    変更理由の伝播で循環を気にする必要はない。
    """

    def __init__(self, target: Target, change_reason: str | None, dependencies: list[AnnotatedTarget] | None = None):
        self.target = target
        self.direct_change_reason = change_reason
        self.dependencies = list(dependencies or [])
        self.depended_upon_by: list[AnnotatedTarget] = []
        self._change_reasons: dict[ChangeLevel, str | None] = {}

        for dependency in self.dependencies:
            dependency.depended_upon_by.append(self)

    @property
    def name(self) -> str:
        return self.target.name

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"<{type(self).__name__} {self.name} direct_change_reason={self.direct_change_reason!r}>"

    def change_reason(self, level: ChangeLevel) -> str | None:
        """levelの範囲で変更されていればその理由、されていなければNone(レベルごとにメモ化)"""
        cached = self._change_reasons.get(level, _NOT_COMPUTED)
        if cached is not _NOT_COMPUTED:
            return cached

        reason = self._compute_change_reason(level)
        self._change_reasons[level] = reason
        return reason

    def _compute_change_reason(self, level: ChangeLevel) -> str | None:
        if self.direct_change_reason is not None:
            return self.direct_change_reason

        if level.kind == ChangeLevelKind.ITSELF:
            return None
        if level.kind == ChangeLevelKind.FULL_TRANSITIVE:
            return self._dependency_change_reason(level)
        if level.kind == ChangeLevelKind.AT_MOST_N_AWAY:
            if level.distance <= 0:
                return None
            return self._dependency_change_reason(level.closer())
        raise ValueError(f"unknown change level {level!r}")

    def _dependency_change_reason(self, level: ChangeLevel) -> str | None:
        for dependency in self.dependencies:
            reason = dependency.change_reason(level)
            if reason is not None:
                return f"dependency {dependency.name} changed because {reason}"
        return None
