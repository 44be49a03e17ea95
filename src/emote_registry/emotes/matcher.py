"""Find emote names inside chat text."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .store import Emote

# Characters that may wrap an emote name, e.g. "(Kappa)"
WRAP_CHARS = "[](){}<>\"'`"
APOSTROPHES = {"'", "\u2019"}

EmoteMatch = tuple[int, int, Emote]


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _segments(text: str, start: int, end: int) -> list[tuple[int, int, bool]]:
    """Split text[start:end] into runs of word and non-word characters."""
    segments: list[tuple[int, int, bool]] = []
    seg_start = start
    seg_kind = _is_word_char(text[start])
    for j in range(start + 1, end):
        kind = _is_word_char(text[j])
        if kind != seg_kind:
            segments.append((seg_start, j, seg_kind))
            seg_start = j
            seg_kind = kind
    segments.append((seg_start, end, seg_kind))
    return segments


def _tokens(text: str) -> Iterable[tuple[int, int]]:
    """Yield (start, end) of each whitespace-separated token."""
    i = 0
    n = len(text)
    while i < n:
        if text[i].isspace():
            i += 1
            continue
        start = i
        while i < n and not text[i].isspace():
            i += 1
        yield start, i


def _unwrap(segment: str, offset: int, emote_map: Mapping[str, Emote]) -> tuple[int, int] | None:
    """Longest emote name left after trimming wrap characters off a segment."""
    left_max = 0
    while left_max < len(segment) and segment[left_max] in WRAP_CHARS:
        left_max += 1
    right_max = 0
    while right_max < len(segment) - left_max and segment[-1 - right_max] in WRAP_CHARS:
        right_max += 1

    best: tuple[int, int] | None = None
    best_len = 0
    for left in range(left_max + 1):
        for right in range(right_max + 1):
            if (left == 0 and right == 0) or left + right >= len(segment):
                continue
            candidate = segment[left : len(segment) - right]
            if candidate in emote_map and len(candidate) > best_len:
                best_len = len(candidate)
                best = (offset + left, offset + len(segment) - right)
    return best


class _Matcher:
    def __init__(self, text: str, emote_map: Mapping[str, Emote], claimed):
        self.text = text
        self.emote_map = emote_map
        self.claimed: list[tuple[int, int]] = list(claimed or [])
        self.matches: list[EmoteMatch] = []

    def overlaps(self, start: int, end: int) -> bool:
        return any(start < e and end > s for s, e in self.claimed)

    def claim(self, start: int, end: int) -> bool:
        emote = self.emote_map.get(self.text[start:end])
        if not emote or self.overlaps(start, end):
            return False
        self.matches.append((start, end, emote))
        self.claimed.append((start, end))
        return True

    def scan_token(self, start: int, end: int) -> None:
        text = self.text
        segments = _segments(text, start, end)
        idx = 0
        while idx < len(segments):
            # Names mixing word and punctuation runs, e.g. "D:" or ":tf:"
            if idx + 2 < len(segments) and self.claim(segments[idx][0], segments[idx + 2][1]):
                idx += 3
                continue
            if idx + 1 < len(segments) and self.claim(segments[idx][0], segments[idx + 1][1]):
                idx += 2
                continue

            seg_start, seg_end, is_word = segments[idx]

            # Contractions like "don't" are not "don" + emote
            if (
                is_word
                and idx + 2 < len(segments)
                and not segments[idx + 1][2]
                and text[segments[idx + 1][0] : segments[idx + 1][1]] in APOSTROPHES
                and segments[idx + 2][2]
            ):
                idx += 1
                continue

            if not self.claim(seg_start, seg_end) and not is_word:
                unwrapped = _unwrap(text[seg_start:seg_end], seg_start, self.emote_map)
                if unwrapped:
                    self.claim(*unwrapped)
            idx += 1


def find_emotes(
    text: str,
    emote_map: Mapping[str, Emote],
    claimed_ranges: Iterable[tuple[int, int]] | None = None,
) -> list[EmoteMatch]:
    """Return (start, end, emote) for each emote name found in text.

    Matches never overlap each other or the given claimed ranges (for
    example positions already taken by native Twitch emotes). Tokens that
    look like URLs are skipped.
    """
    if not text or not emote_map:
        return []

    matcher = _Matcher(text, emote_map, claimed_ranges)
    for start, end in _tokens(text):
        token = text[start:end]
        if "http://" in token or "https://" in token:
            continue
        matcher.scan_token(start, end)
    return matcher.matches
