from typing import Any

import yaml


class YamlDiffer:
    """
    2つのYAML値の構造的な差分を作成する。

    差分は変更があった部分木だけを残したdictで、葉の部分は
    {key_1: 変更前の値, key_2: 変更後の値} の形になる。
    """

    @staticmethod
    def diff(value_1: Any, value_2: Any, key_1: str = "value_1", key_2: str = "value_2") -> Any:
        if type(value_1) is type(value_2):
            if isinstance(value_1, dict):
                return YamlDiffer._hash_diff(value_1, value_2, key_1, key_2)
            if isinstance(value_1, list):
                return YamlDiffer._array_diff(value_1, value_2, key_1, key_2)
        return YamlDiffer._generic_diff(value_1, value_2, key_1, key_2)

    @staticmethod
    def _hash_diff(value_1: dict, value_2: dict, key_1: str, key_2: str) -> dict | None:
        if value_1 == value_2:
            return None

        new_hash = {}
        # 変更前のキー順 => 変更後にだけあるキー の順で並べる
        all_keys = list(value_1.keys()) + [key for key in value_2 if key not in value_1]
        for key in all_keys:
            diff = YamlDiffer.diff(value_1.get(key), value_2.get(key), key_1, key_2)
            if diff is not None:
                new_hash[key] = diff
        return new_hash

    @staticmethod
    def _array_diff(value_1: list, value_2: list, key_1: str, key_2: str) -> dict | None:
        if value_1 == value_2:
            return None

        new_objects_value_1 = YamlDiffer._array_non_unique_diff(value_1, value_2)
        new_objects_value_2 = YamlDiffer._array_non_unique_diff(value_2, value_1)

        result = {}
        if new_objects_value_1:
            result[key_1] = new_objects_value_1
        if new_objects_value_2:
            result[key_2] = new_objects_value_2
        if not result:
            # 要素は同じで順序だけ変わったケース
            return YamlDiffer._generic_diff(value_1, value_2, key_1, key_2)
        return result

    @staticmethod
    def _array_non_unique_diff(value_1: list, value_2: list) -> list:
        """value_1にあってvalue_2にない要素(重複は個数で数える)"""
        remaining = list(value_2)
        result = []
        for value in value_1:
            if value in remaining:
                remaining.remove(value)
            else:
                result.append(value)
        return result

    @staticmethod
    def _generic_diff(value_1: Any, value_2: Any, key_1: str, key_2: str) -> dict | None:
        if value_1 == value_2:
            return None
        return {key_1: value_1, key_2: value_2}

    @staticmethod
    def dump(diff: Any) -> str:
        return yaml.safe_dump(
            diff, explicit_start=True, default_flow_style=False, sort_keys=False, allow_unicode=True
        )
