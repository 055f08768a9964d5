class RefinementError(Exception):
    """refinement全体の基底例外"""


class ConfigurationError(RefinementError, ValueError):
    """入力パラメータや設定ファイルの矛盾・不足(解析開始前に検出する)"""


class UnknownChangeLevelError(ConfigurationError):
    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Unknown change level {token!r}, only 'full-transitive', 'itself' or an integer are known")


class GitError(RefinementError):
    """gitコマンドの失敗(解析全体が失敗扱いになる)"""

    def __init__(self, command: list[str], returncode: int, output: str):
        self.command = command
        self.returncode = returncode
        self.output = output
        super().__init__(f"Running {' '.join(command)} failed (exit {returncode}):\n\n{output}")


class DependencyCycleError(RefinementError):
    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__("Dependency cycle detected: " + " -> ".join(cycle))
