"""
Dir.glob風のパターンをパス区切りを意識したfnmatchで扱うためのユーティリティ。

    dir_glob_equivalent_patterns("{file1,file2}.{h,m}")
    => ["file1.h", "file1.m", "file2.h", "file2.m"]

    dir_glob_equivalent_patterns("Classes/**/file.m")
    => ["Classes/**/file.m", "Classes/file.m"]
"""

import functools
import itertools
import re

_BRACE_SET = re.compile(r"\{[^}]*\}")


def dir_glob_equivalent_patterns(pattern: str) -> list[str]:
    """{a,b}の選択肢を直積で展開し、/**/ が「このディレクトリ」にも一致するパターン群を返す"""
    pattern = pattern.replace("/**/", "{/**/,/}")

    values_by_set: dict[str, list[str]] = {}
    for brace_set in _BRACE_SET.findall(pattern):
        values_by_set.setdefault(brace_set, brace_set[1:-1].split(","))

    if not values_by_set:
        return [pattern]

    sets = list(values_by_set)
    patterns = []
    for values in itertools.product(*(values_by_set[brace_set] for brace_set in sets)):
        expanded = pattern
        for brace_set, value in zip(sets, values):
            expanded = expanded.replace(brace_set, value)
        patterns.append(expanded)
    return patterns


def fnmatch_pathname(pattern: str, path: str) -> bool:
    """大文字小文字を区別せず、ワイルドカードが / をまたがないfnmatch"""
    return _compile(pattern).fullmatch(path) is not None


@functools.lru_cache(maxsize=1024)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(_translate(pattern), re.IGNORECASE | re.DOTALL)


def _translate(pattern: str) -> str:
    i, n = 0, len(pattern)
    parts: list[str] = []
    while i < n:
        c = pattern[i]
        component_start = i == 0 or pattern[i - 1] == "/"
        # ワイルドカードで始まるパス要素は先頭の . に一致させない
        no_dot = "(?!\\.)" if component_start else ""
        if c == "*":
            if component_start and pattern.startswith("**/", i):
                # **/ は0個以上のディレクトリ
                parts.append("(?:(?!\\.)[^/]*/)*")
                i += 3
                continue
            while i < n and pattern[i] == "*":
                i += 1
            parts.append(no_dot + "[^/]*")
            continue
        if c == "?":
            parts.append(no_dot + "[^/]")
        elif c == "[":
            end = _find_bracket_end(pattern, i)
            if end < 0:
                parts.append(re.escape(c))
            else:
                parts.append(no_dot + _translate_bracket(pattern[i + 1 : end]))
                i = end + 1
                continue
        elif c == "\\" and i + 1 < n:
            i += 1
            parts.append(re.escape(pattern[i]))
        else:
            parts.append(re.escape(c))
        i += 1
    return "".join(parts)


def _find_bracket_end(pattern: str, start: int) -> int:
    j = start + 1
    if j < len(pattern) and pattern[j] in "!^":
        j += 1
    if j < len(pattern) and pattern[j] == "]":
        j += 1
    while j < len(pattern) and pattern[j] != "]":
        if pattern[j] == "/":
            return -1
        j += 1
    return j if j < len(pattern) else -1


def _translate_bracket(body: str) -> str:
    negate = body[:1] in ("!", "^")
    if negate:
        body = body[1:]
    body = body.replace("\\", "\\\\")
    chars = "".join("\\" + ch if ch in "^]" else ch for ch in body)
    if negate:
        return f"(?!/)[^{chars}]"
    return f"[{chars}]"
