import subprocess
from typing import Any

from refinement.utils.log_util import log


class SubprocessUtil:
    CompletedProcess = subprocess.CompletedProcess
    CalledProcessError = subprocess.CalledProcessError

    @staticmethod
    def run(
        args: list[str],
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        encoding: str = "utf-8",
        errors: str | None = None,
        timeout: float | None = None,
        *,  # ↑位置引数(args=とか省略可) ココから後はキーワード引数↓
        text: bool = True,
        capture_output: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """
        サブプロセスでコマンドを実行します。

        引数:
            args (list[str]): 実行するコマンド。
            cwd (Optional[str]): コマンドの作業ディレクトリ。
            env (Optional[Dict[str, str]]): 新しいプロセスの環境変数。
            timeout (Optional[float]): プロセスがtimeout秒後に終了しない場合、TimeoutExpired例外を発生させます。
            check (bool): Trueの場合、終了コードが0以外ならCalledProcessErrorを発生させます。
            capture_output (bool): Trueの場合、stdoutとstderrをキャプチャします。
            text (bool): Trueの場合、指定されたエンコーディングを使用してstdoutとstderrをデコードします。
            encoding (Optional[str]): テキストモード操作に使用するエンコーディング。
            errors (Optional[str]): デコード時のエラーハンドリング方式。

        戻り値:
            subprocess.CompletedProcess: CompletedProcessインスタンス。

        例外:
            subprocess.CalledProcessError: checkがTrueで、プロセスが非ゼロの終了ステータスを返した場合。
            subprocess.TimeoutExpired: タイムアウトが発生した場合。
        """
        kwargs: dict[str, Any] = {
            "args": args,
            "cwd": cwd,
            "env": env,
            "timeout": timeout,
            "capture_output": capture_output,
            "text": text,
            "encoding": encoding if text else None,
            "errors": errors,
        }

        # Remove None values to use default subprocess.run behavior
        kwargs = {k: v for k, v in kwargs.items() if v is not None}
        log("run args=%s cwd=%s", args, cwd)

        # Avoid W1510: https://pylint.readthedocs.io/en/latest/user_guide/messages/warning/subprocess-run-check.html
        return subprocess.run(**kwargs, check=check)  # noqa: S603
