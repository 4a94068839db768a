"""Weighted fuzzy matching over document fields.

Scores follow the usual fuzzy-search convention: ``0.0`` is a perfect match
and ``1.0`` a complete mismatch. For each field the best alignment of the
query is located, then scored as::

    error_rate + |match_start - location| / distance

so early matches beat late ones. Query characters left outside the alignment
count as errors, so a field much shorter than the query cannot match it.
Fields scoring above ``threshold`` do not match. A record's score is the
product over matching fields of ``score ** (weight * norm)``, where ``norm``
shrinks with the field's token count so a hit in a short title outweighs the
same hit in a long body. Records with no matching field are dropped.
"""

import re
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from rapidfuzz import fuzz

from libs.vector_store.base import DocumentRecord

_TOKEN = re.compile(r"[^ ]+")


@dataclass(frozen=True)
class FuzzyField:
    """A record attribute searched by the matcher and its relative weight."""
    name: str
    weight: float


DEFAULT_FIELDS = (FuzzyField("title", 0.7), FuzzyField("content", 0.3))


class FuzzyMatcher:
    """Fuzzy matcher for ``DocumentRecord`` collections.

    Parameters
    - fields: Attributes to search with their weights (normalised to sum 1)
    - threshold: Maximum field score that still counts as a match
    - min_match_length: Minimum aligned length, in characters, of a match
    - location: Expected match position within a field
    - distance: Characters from ``location`` over which proximity decays
    - ignore_location: Score on error rate only
    - ignore_field_norm: Skip the field-length norm
    """

    def __init__(
        self,
        fields: Sequence[FuzzyField] = DEFAULT_FIELDS,
        threshold: float = 0.4,
        min_match_length: int = 2,
        location: int = 0,
        distance: int = 100,
        ignore_location: bool = False,
        ignore_field_norm: bool = False,
    ):
        total_weight = sum(field.weight for field in fields)
        if not fields or total_weight <= 0:
            raise ValueError("Fuzzy matcher needs at least one positively weighted field")

        self.fields = tuple(FuzzyField(f.name, f.weight / total_weight) for f in fields)
        self.threshold = threshold
        self.min_match_length = min_match_length
        self.location = location
        self.distance = distance
        self.ignore_location = ignore_location
        self.ignore_field_norm = ignore_field_norm

    def search(
        self,
        query: str,
        records: Sequence[DocumentRecord],
        limit: Optional[int] = None
    ) -> List[Tuple[DocumentRecord, float]]:
        """Match ``query`` against ``records``.

        Returns ``(record, score)`` pairs, best (lowest) score first; ties
        keep the input order.
        """
        pattern = query.lower()
        if not pattern:
            return []

        scored: List[Tuple[float, int, DocumentRecord]] = []
        for index, record in enumerate(records):
            score = self.score_record(pattern, record)
            if score is not None:
                scored.append((score, index, record))

        scored.sort(key=lambda item: (item[0], item[1]))
        if limit is not None:
            scored = scored[:max(limit, 0)]
        return [(record, score) for score, _, record in scored]

    def score_record(self, pattern: str, record: DocumentRecord) -> Optional[float]:
        """Combined score of ``record`` for a lower-cased ``pattern``."""
        total = 1.0
        matched = False

        for field in self.fields:
            value = getattr(record, field.name, None)
            if not isinstance(value, str) or not value:
                continue

            field_score = self.score_field(pattern, value.lower())
            if field_score is None:
                continue

            matched = True
            norm = 1.0 if self.ignore_field_norm else self.field_norm(value)
            base = field_score if field_score > 0 else sys.float_info.epsilon
            total *= base ** (field.weight * norm)

        return total if matched else None

    def score_field(self, pattern: str, text: str) -> Optional[float]:
        """Best score of ``pattern`` inside ``text``, or ``None`` if it does not match."""
        if text == pattern:
            return 0.0

        best: Optional[float] = None

        if len(pattern) >= self.min_match_length:
            exact_at = text.find(pattern)
            if exact_at != -1:
                best = self._compute_score(0.0, exact_at, len(pattern))

        alignment = fuzz.partial_ratio_alignment(pattern, text)
        if alignment is not None and alignment.dest_end - alignment.dest_start >= self.min_match_length:
            aligned = alignment.src_end - alignment.src_start
            # query characters outside the aligned window are unmatched
            errors = (1.0 - alignment.score / 100.0) * aligned + (len(pattern) - aligned)
            candidate = self._compute_score(errors, alignment.dest_start, len(pattern))
            best = candidate if best is None else min(best, candidate)

        if best is None or best > self.threshold:
            return None
        return best

    def _compute_score(self, errors: float, match_start: int, pattern_length: int) -> float:
        accuracy = errors / pattern_length
        if self.ignore_location:
            return accuracy

        proximity = abs(self.location - match_start)
        if not self.distance:
            return 1.0 if proximity else accuracy
        return accuracy + proximity / self.distance

    @staticmethod
    def field_norm(value: str) -> float:
        tokens = len(_TOKEN.findall(value)) or 1
        return round(1.0 / tokens ** 0.5, 3)
