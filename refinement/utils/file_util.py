import os

import yaml

from refinement.utils.log_util import log


class FileUtil:
    @staticmethod
    def read_text(file_path: str) -> str:
        """ファイルをそのまま読み込む(存在しない場合は例外をそのまま送出)"""
        with open(file_path, encoding="utf-8") as file:
            return file.read()

    @staticmethod
    def read_yaml(file_path: str):
        # JSONもYAMLのサブセットとして読み込める
        with open(file_path, encoding="utf-8") as file:
            return yaml.safe_load(file)

    @staticmethod
    def write_file(file_path: str, content: str) -> str:
        file_dir = os.path.dirname(file_path)
        if file_dir != "" and not os.path.exists(file_dir):
            os.makedirs(file_dir, exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as file:
            file.write(content)
        log("write_file file_path=%s, content(len)=%d", file_path, len(content))
        return file_path

    @staticmethod
    def expand_path(path: str, base_dir: str) -> str:
        """base_dir基準で絶対パスに正規化する(末尾の/は除去される)"""
        return os.path.normpath(os.path.join(str(base_dir), str(path)))
