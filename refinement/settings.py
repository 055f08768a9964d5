import os
from os.path import dirname, join

from dotenv import load_dotenv

load_dotenv(verbose=True)

dotenv_path = join(dirname(__file__), ".env")
load_dotenv(dotenv_path)

# mode
is_debug = os.getenv("IS_DEBUG", "False").lower() in ("true", "1", "t")  # デバッグモード(例: IS_DEBUG=True)

# log
log_file = os.getenv("REFINEMENT_LOG_FILE", "refinement.log")  # 空文字ならファイル出力しない
log_max_bytes = 1024 * 1024  # 1MB
log_backup_count = 5

# analyzer
change_level = os.getenv("REFINEMENT_CHANGE_LEVEL", "full-transitive")  # full-transitive | itself | 整数
build_action = os.getenv("REFINEMENT_BUILD_ACTION", "testing")  # building | testing

# git
git_executable = os.getenv("REFINEMENT_GIT", "git")

# console
console_width = int(os.getenv("REFINEMENT_CONSOLE_WIDTH", "120"))
