"""
BM25 keyword scoring for full-text relevance.

Used by the document stores to score text-search candidates. BM25L is used
rather than Okapi so that scores stay positive on very small corpora.
"""

import re
from typing import List, Sequence, Tuple
from rank_bm25 import BM25L

TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)

STOP_WORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "do", "does", "for",
    "from", "how", "i", "in", "is", "it", "its", "of", "on", "or", "that",
    "the", "this", "to", "was", "what", "when", "where", "which", "who",
    "why", "will", "with", "you", "your",
})


def tokenize(text: str) -> List[str]:
    """Lower-cased word tokens with stop words removed."""
    return [token for token in TOKEN_PATTERN.findall(text.lower()) if token not in STOP_WORDS]


class KeywordScorer:
    """BM25 scorer over an ad hoc corpus of chunk texts."""

    def __init__(self, k1: float = 1.5, b: float = 0.75, delta: float = 0.5):
        """
        Initialize keyword scorer.

        Args:
            k1: BM25 term-frequency saturation
            b: BM25 length normalization
            delta: BM25L lower-bound shift
        """
        self.k1 = k1
        self.b = b
        self.delta = delta

    def score(self, query: str, texts: Sequence[str]) -> List[float]:
        """
        Score every text against the query.

        Texts sharing no term with the query score 0.0.

        Args:
            query: Free-text query
            texts: Corpus to score

        Returns:
            One score per text, in corpus order
        """
        query_terms = tokenize(query)
        corpus = [tokenize(text) for text in texts]
        if not query_terms or not any(corpus):
            return [0.0] * len(texts)

        bm25 = BM25L(corpus, k1=self.k1, b=self.b, delta=self.delta)
        raw_scores = bm25.get_scores(query_terms)

        query_set = set(query_terms)
        return [
            float(raw) if query_set.intersection(doc) else 0.0
            for raw, doc in zip(raw_scores, corpus)
        ]

    def rank(self, query: str, texts: Sequence[str], limit: int) -> List[Tuple[int, float]]:
        """
        Rank matching texts by descending score.

        Returns:
            ``(index, score)`` pairs for texts that match at least one query term
        """
        scored = [(index, score) for index, score in enumerate(self.score(query, texts)) if score > 0]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:limit]
