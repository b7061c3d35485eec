"""Small string helpers for normalizing result-set keys."""
import re

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CASE_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATORS = re.compile(r"[\s\-_]+")


def to_snake_case(name: str) -> str:
    """
    Convert PascalCase, camelCase or Mixed_Snake keys to lower snake_case.
        'Key_name'     -> 'key_name'
        'Seq_in_index' -> 'seq_in_index'
        'nonUnique'    -> 'non_unique'
        'HTTPCode'     -> 'http_code'
    """
    if not name:
        return name
    s = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    s = _CASE_BOUNDARY.sub(r"\1_\2", s)
    return _SEPARATORS.sub("_", s).strip("_").lower()


def snake_case_keys(row: dict) -> dict:
    return {to_snake_case(str(k)): v for k, v in row.items()}
