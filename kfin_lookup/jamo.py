"""
Hangul jamo decomposition.

A precomposed syllable is split into its initial consonant, medial vowel
and (optional) final consonant so that two names differing by one vowel
are one unit apart instead of one whole syllable apart.
"""
from __future__ import annotations

HANGUL_BASE = 0xAC00
HANGUL_LAST = 0xD7A3

_JUNG_COUNT = 21
_JONG_COUNT = 28
_SYLLABLES_PER_CHO = _JUNG_COUNT * _JONG_COUNT  # 588

CHO = (
    "ㄱ", "ㄲ", "ㄴ", "ㄷ", "ㄸ", "ㄹ", "ㅁ", "ㅂ", "ㅃ",
    "ㅅ", "ㅆ", "ㅇ", "ㅈ", "ㅉ", "ㅊ", "ㅋ", "ㅌ", "ㅍ", "ㅎ",
)

JUNG = (
    "ㅏ", "ㅐ", "ㅑ", "ㅒ", "ㅓ", "ㅔ", "ㅕ", "ㅖ", "ㅗ", "ㅘ",
    "ㅙ", "ㅚ", "ㅛ", "ㅜ", "ㅝ", "ㅞ", "ㅟ", "ㅠ", "ㅡ", "ㅢ", "ㅣ",
)

# index 0 = no final consonant
JONG = (
    "", "ㄱ", "ㄲ", "ㄳ", "ㄴ", "ㄵ", "ㄶ", "ㄷ", "ㄹ", "ㄺ",
    "ㄻ", "ㄼ", "ㄽ", "ㄾ", "ㄿ", "ㅀ", "ㅁ", "ㅂ", "ㅄ", "ㅅ",
    "ㅆ", "ㅇ", "ㅈ", "ㅊ", "ㅋ", "ㅌ", "ㅍ", "ㅎ",
)

def decompose_hangul(char: str) -> tuple[str, ...]:
    """
    Decompose one character into jamo.

    >>> decompose_hangul("삼")
    ('ㅅ', 'ㅏ', 'ㅁ')
    >>> decompose_hangul("아")
    ('ㅇ', 'ㅏ')
    >>> decompose_hangul("A")
    ('A',)
    """
    if not char:
        return (char,)
    code = ord(char[0])
    if code < HANGUL_BASE or code > HANGUL_LAST:
        return (char,)

    offset = code - HANGUL_BASE
    cho = CHO[offset // _SYLLABLES_PER_CHO]
    jung = JUNG[(offset % _SYLLABLES_PER_CHO) // _JONG_COUNT]
    jong_idx = offset % _JONG_COUNT
    if jong_idx == 0:
        return (cho, jung)
    return (cho, jung, JONG[jong_idx])


def decompose_string(text: str) -> tuple[str, ...]:
    """Decompose every character of `text`, preserving order."""
    out: list[str] = []
    for ch in text:
        out.extend(decompose_hangul(ch))
    return tuple(out)

