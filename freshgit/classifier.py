"""Detect git output lines that mean a process failed or is waiting for input."""

from __future__ import annotations

import re
from typing import Iterable, Protocol

DEFAULT_FAILURE_MARKERS: tuple[str, ...] = (
    "Failed",
    "failed",
    "Enter passphrase",
    "enter passphrase",
    "Enter passphrase for key",
    "Couldn't",
    "couldn't",
    "Could not",
    "could not",
    "Error",
    "error",
    "Traceback",
    "404",
    "fatal",
    "denied",
)

_SEPARATORS = re.compile(r"[ :]+")


class Classifier(Protocol):
    """Policy consulted for every output line; returns the matched marker or None."""

    def __call__(self, line: str) -> str | None: ...


def tokenize(line: str) -> list[str]:
    """Split a line on spaces and colons, dropping empty tokens."""

    return [token for token in _SEPARATORS.split(line.strip()) if token]


class MarkerClassifier:
    """Token-based matcher over a fixed, case-sensitive marker vocabulary.

    Multi-word markers such as ``could not`` match when their tokens appear
    as a contiguous run in the line.
    """

    def __init__(self, markers: Iterable[str] = DEFAULT_FAILURE_MARKERS):
        phrases: dict[tuple[str, ...], str] = {}
        for marker in markers:
            tokens = tuple(tokenize(marker))
            if tokens:
                phrases.setdefault(tokens, marker)
        self._phrases = phrases
        self._longest = max((len(tokens) for tokens in phrases), default=0)

    @property
    def markers(self) -> list[str]:
        return list(self._phrases.values())

    def match(self, line: str) -> str | None:
        tokens = tokenize(line)
        for start in range(len(tokens)):
            # Prefer the longest phrase starting at this token.
            for width in range(min(self._longest, len(tokens) - start), 0, -1):
                marker = self._phrases.get(tuple(tokens[start : start + width]))
                if marker is not None:
                    return marker
        return None

    def classify(self, line: str) -> bool:
        return self.match(line) is not None

    __call__ = match


default_classifier = MarkerClassifier()


__all__ = [
    "Classifier",
    "DEFAULT_FAILURE_MARKERS",
    "MarkerClassifier",
    "default_classifier",
    "tokenize",
]
