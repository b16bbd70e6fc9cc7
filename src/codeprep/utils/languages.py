"""Evaluator language ids and their display names."""
from typing import Optional, Union

LANGUAGE_IDS: dict[str, int] = {
    "C": 50,
    "C++": 54,
    "Go": 60,
    "Java": 62,
    "JavaScript": 63,
    "PHP": 68,
    "Python": 71,
    "Ruby": 72,
    "Rust": 73,
}

_ALIASES: dict[str, str] = {
    "c": "C",
    "c++": "C++",
    "cpp": "C++",
    "go": "Go",
    "golang": "Go",
    "java": "Java",
    "javascript": "JavaScript",
    "js": "JavaScript",
    "php": "PHP",
    "python": "Python",
    "python3": "Python",
    "ruby": "Ruby",
    "rust": "Rust",
}

_NAMES_BY_ID: dict[int, str] = {language_id: name for name, language_id in LANGUAGE_IDS.items()}


def get_language_name(language: Union[str, int, None]) -> str:
    """Normalize an evaluator id or a spelling of a language to its display name.

    Unknown values are returned as given, ``None`` becomes ``"unknown"``.
    """
    if language is None:
        return "unknown"
    value = str(language).strip()
    if value.isdigit():
        return _NAMES_BY_ID.get(int(value), value)
    return _ALIASES.get(value.lower(), value)


def get_language_id(language: Union[str, int]) -> Optional[int]:
    """Evaluator id for a display name, alias or id; ``None`` if unsupported."""
    return LANGUAGE_IDS.get(get_language_name(language))
