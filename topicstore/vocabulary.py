"""Vocabulary - map term ids to term text and back.

The query engine only borrows a vocabulary to label top-k results; it never
modifies it. Anything with a ``term_text(term_id)`` method that raises
``LookupError`` for unknown ids can be used instead of ``Vocabulary``.
"""
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Protocol, Union

logger = logging.getLogger(__name__)


class TermLookup(Protocol):
    """Minimal interface the query engine needs from a vocabulary."""

    def term_text(self, term_id: int) -> str:
        ...


class Vocabulary:
    """An in-memory, id-ordered list of terms.

    Example:
        vocab = Vocabulary(["model", "topic", "term"])
        vocab.term_text(1)      # "topic"
        vocab.term_id("term")   # 2
    """

    def __init__(self, terms: Iterable[str]):
        self._terms: List[str] = list(terms)
        self._ids: Dict[str, int] = {}
        for term_id, text in enumerate(self._terms):
            # First occurrence wins for duplicate texts
            self._ids.setdefault(text, term_id)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Vocabulary":
        """Load a vocabulary with one term per line; line ``i`` is term id ``i``."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            terms = [line.rstrip("\n").rstrip("\r") for line in f]
        logger.debug("Loaded %d terms from %s", len(terms), path)
        return cls(terms)

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, text: object) -> bool:
        return text in self._ids

    def term_text(self, term_id: int) -> str:
        """Text of ``term_id``.

        Raises:
            KeyError: If the id is not in the vocabulary
        """
        if not 0 <= term_id < len(self._terms):
            raise KeyError(term_id)
        return self._terms[term_id]

    def term_id(self, text: str) -> int:
        """Id of ``text``.

        Raises:
            KeyError: If the text is not in the vocabulary
        """
        return self._ids[text]
