import re
import yaml


def load_yaml(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def coalesce(*args):
    for a in args:
        if a is not None and a != "":
            return a
    return None


def as_bool(value, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def match_any(patterns, text: str) -> bool:
    for p in patterns or []:
        if re.search(p, text):
            return True
    return False
