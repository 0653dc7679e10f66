from __future__ import annotations

from sprouttie.types import ScriptClass


def _in_ranges(text: str, ranges: tuple[tuple[int, int], ...]) -> bool:
    for char in str(text or ''):
        code = ord(char)
        for low, high in ranges:
            if low <= code <= high:
                return True
    return False


# CJK Unified Ideographs
_CJK_CORE = ((0x4E00, 0x9FFF),)
# Latin Extended-A/B through Combining Diacritical Marks
_LATIN_DIACRITIC = ((0x0100, 0x036F),)
_CJK_DISPLAY = ((0x3400, 0x9FFF),)
_CHINESE_ANY = (
    (0x3400, 0x9FFF),  # CJK Extension A + Unified Ideographs
    (0xF900, 0xFAFF),  # CJK Compatibility Ideographs
    (0x20000, 0x2A6DF),  # CJK Extension B
)


def classify(text: str) -> ScriptClass:
    """Pick the script class that decides which font renders ``text``."""
    if _in_ranges(text, _CJK_CORE):
        return ScriptClass.cjk
    if _in_ranges(text, _LATIN_DIACRITIC):
        return ScriptClass.latin_diacritic
    return ScriptClass.ascii


def contains_chinese(text: str) -> bool:
    """Wider check used to decide whether the CJK face must be loaded first."""
    return _in_ranges(text, _CHINESE_ANY)


def is_cjk_display(text: str) -> bool:
    return _in_ranges(text, _CJK_DISPLAY)
