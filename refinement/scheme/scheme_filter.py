from collections.abc import Callable, Mapping, Sequence

from refinement.analyzer.used_path import UsedPath
from refinement.changeset.changeset import Changeset
from refinement.scheme.scheme import Scheme, SchemeEntryKind
from refinement.schema.schema import BuildAction
from refinement.utils.log_util import log, log_i

# each_target(type=..., target_name=..., change_reason=...)
EachTargetCallback = Callable[..., None]


class SchemeFilter:
    """
    変更のないターゲットの項目をスキームから取り除く。

    building: BuildActionEntryとTestableReferenceの両方を削除する。
    testing: TestableReferenceだけを削除し、BuildActionEntryはテストのマクロ展開で
    必要になり得るので残したままbuildForTesting="NO"にする。
    """

    def __init__(
        self,
        changesets: Sequence[Changeset],
        change_reasons: Callable[[], Mapping[str, str | None]],
        filter_scheme_for_build_action: BuildAction | str,
        filter_when_scheme_has_changed: bool = False,
        log_changes: bool = False,
        each_target: EachTargetCallback | None = None,
    ):
        self.changesets = list(changesets)
        self.change_reasons = change_reasons
        self.build_action = BuildAction.new(filter_scheme_for_build_action)
        self.filter_when_scheme_has_changed = filter_when_scheme_has_changed
        self.log_changes = log_changes
        self.each_target = each_target

    def filter(self, scheme: Scheme) -> Scheme:
        """schemeをその場で書き換えて返す"""
        if not self.filter_when_scheme_has_changed and self.scheme_has_changed(scheme):
            log("scheme %s has changed, not filtering", scheme.path)
            return scheme

        change_reasons = self.change_reasons()
        self._notify_each_target(scheme, change_reasons)

        kinds_to_remove = [SchemeEntryKind.BUILD, SchemeEntryKind.TEST]
        if self.build_action == BuildAction.TESTING:
            kinds_to_remove = [SchemeEntryKind.TEST]

        for kind in kinds_to_remove:
            for entry in scheme.entries(kind):
                change_reason = change_reasons.get(entry.target_name)
                if change_reason is not None:
                    self._log_change(f"{entry.target_name} changed because {change_reason}")
                    continue
                self._log_change(f"{entry.target_name} did not change, removing from scheme")
                scheme.remove(entry)

        if self.build_action == BuildAction.TESTING:
            for entry in scheme.entries(SchemeEntryKind.BUILD):
                change_reason = change_reasons.get(entry.target_name)
                if change_reason is not None:
                    self._log_change(f"{entry.target_name} changed because {change_reason}")
                    continue
                self._log_change(f"{entry.target_name} did not change, setting to not build for testing")
                scheme.set_build_for_testing(entry, False)

        return scheme

    def scheme_has_changed(self, scheme: Scheme) -> bool:
        if not scheme.path or not self.changesets:
            return False
        used_path = UsedPath(path=scheme.path, inclusion_reason="scheme")
        return used_path.find_in_changesets(self.changesets) is not None

    def _notify_each_target(self, scheme: Scheme, change_reasons: Mapping[str, str | None]) -> None:
        if self.each_target is None:
            return
        notified: set[str] = set()
        for entry in scheme.entries():
            if entry.target_name in notified:
                continue
            notified.add(entry.target_name)
            change_reason = change_reasons.get(entry.target_name)
            self.each_target(
                type="changed" if change_reason is not None else "unchanged",
                target_name=entry.target_name,
                change_reason=change_reason,
            )

    def _log_change(self, message: str) -> None:
        if self.log_changes:
            log_i(message)
