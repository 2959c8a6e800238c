"""Topic Model Query Engine - read-only access to a trained topic model.

Example:
    from topicstore.query import load_topic_model
    from topicstore.vocabulary import Vocabulary

    model = load_topic_model(
        {"lda": {"model-prefix": "lda-model"}},
        vocabulary=Vocabulary.from_file("vocab.txt"),
    )
    for term in model.top_k(topic_id=0, k=5):
        print(f"{term.text:<15} {term.probability:.4f}")
"""

import logging
from typing import Any, BinaryIO, List, Mapping, Optional, Union

from ..checkpoint.codec import (
    DOC_TOPIC_STREAM,
    TOPIC_TERM_STREAM,
    decode_doc_topic,
    decode_topic_term,
)
from ..checkpoint.store import CheckpointStore
from ..config import TopicModelConfig
from ..core.distribution import DiscreteDistribution, DistributionTable
from ..core.models import CheckpointPair, Term, Topic
from ..exceptions import OutOfRangeError
from ..utils.progress import ProgressReporter
from ..vocabulary import TermLookup
from .topk import select_top_k

logger = logging.getLogger(__name__)


def _stream_name(base: str, stream: BinaryIO) -> str:
    # File objects carry their path; in-memory buffers do not.
    path = getattr(stream, "name", None)
    return f"{base} {path}" if isinstance(path, str) else base


class TopicModel:
    """A read-only model for querying topic models.

    Instances never change after construction, so one model can serve
    concurrent readers without locking.

    Args:
        theta: Stream holding the document-topic table
        phi: Stream holding the topic-term table
        vocabulary: Optional term lookup used to label top-k results
        progress: Optional progress reporter for decoding

    Raises:
        TruncatedStreamError: If either stream ends early
        CorruptCheckpointError: If either stream is inconsistent
    """

    def __init__(
        self,
        theta: BinaryIO,
        phi: BinaryIO,
        vocabulary: Optional[TermLookup] = None,
        progress: Optional[ProgressReporter] = None,
    ):
        topic_term = decode_topic_term(
            phi, progress, name=_stream_name(TOPIC_TERM_STREAM, phi)
        )
        doc_topic = decode_doc_topic(
            theta, progress, name=_stream_name(DOC_TOPIC_STREAM, theta)
        )
        self._init_tables(doc_topic, topic_term, vocabulary)

    @classmethod
    def from_pair(
        cls,
        pair: CheckpointPair,
        vocabulary: Optional[TermLookup] = None,
    ) -> "TopicModel":
        """Wrap tables that are already in memory."""
        model = cls.__new__(cls)
        model._init_tables(pair.doc_topic, pair.topic_term, vocabulary)
        return model

    def _init_tables(
        self,
        doc_topic: DistributionTable,
        topic_term: DistributionTable,
        vocabulary: Optional[TermLookup],
    ) -> None:
        self._phi = topic_term
        self._theta = doc_topic
        self._num_topics = len(topic_term)
        self._num_words = topic_term.num_outcomes
        self._num_docs = len(doc_topic)
        self._vocabulary = vocabulary

        if doc_topic.num_outcomes != self._num_topics:
            logger.warning(
                "document topic table covers %d topics but topic term table has %d",
                doc_topic.num_outcomes, self._num_topics,
            )

    def num_topics(self) -> int:
        return self._num_topics

    def num_words(self) -> int:
        return self._num_words

    def num_docs(self) -> int:
        return self._num_docs

    def _check_topic(self, topic_id: int) -> None:
        if not 0 <= topic_id < self._num_topics:
            raise OutOfRangeError("topic", topic_id, self._num_topics)

    def _check_doc(self, doc_id: int) -> None:
        if not 0 <= doc_id < self._num_docs:
            raise OutOfRangeError("document", doc_id, self._num_docs)

    # =========================================================================
    # Point lookups
    # =========================================================================

    def topic_distribution(self, doc_id: int) -> DiscreteDistribution:
        """The distribution over topics for a document.

        Raises:
            OutOfRangeError: If doc_id is not in [0, num_docs)
        """
        self._check_doc(doc_id)
        return self._theta[doc_id]

    def term_probability(self, topic_id: int, term_id: int) -> float:
        """Probability of a term under a topic.

        Returns 0.0 for term ids outside the vocabulary.

        Raises:
            OutOfRangeError: If topic_id is not in [0, num_topics)
        """
        self._check_topic(topic_id)
        return self._phi[topic_id].probability(term_id)

    def topic_probability(self, doc_id: int, topic_id: int) -> float:
        """Probability of a topic for a document.

        Returns 0.0 for topic ids outside the document's distribution.

        Raises:
            OutOfRangeError: If doc_id is not in [0, num_docs)
        """
        self._check_doc(doc_id)
        return self._theta[doc_id].probability(topic_id)

    def term_text_probability(self, topic_id: int, text: str) -> Term:
        """Look up a term by its text and return it with its probability.

        Raises:
            ValueError: If the model has no vocabulary
            KeyError: If the vocabulary does not contain ``text``
            OutOfRangeError: If topic_id is not in [0, num_topics)
        """
        if self._vocabulary is None or not hasattr(self._vocabulary, "term_id"):
            raise ValueError("term lookup by text needs a vocabulary with term_id()")
        term_id = self._vocabulary.term_id(text)
        return Term(term_id=term_id, text=text,
                    probability=self.term_probability(topic_id, term_id))

    # =========================================================================
    # Top-k queries
    # =========================================================================

    def top_k(self, topic_id: int, k: int = 10) -> List[Term]:
        """The ``k`` most probable terms of a topic.

        Terms come back by descending probability; equal probabilities are
        ordered by ascending term id. Fewer than ``k`` terms are returned
        when the vocabulary is smaller than ``k``.

        Raises:
            OutOfRangeError: If topic_id is not in [0, num_topics)
            ValueError: If k is negative
        """
        self._check_topic(topic_id)
        selected = select_top_k(self._phi[topic_id].as_array(), k)
        return [
            Term(term_id=term_id, text=self._term_text(term_id), probability=prob)
            for term_id, prob in selected
        ]

    def top_topics(self, doc_id: int, k: int = 10) -> List[Topic]:
        """The ``k`` most probable topics of a document.

        Raises:
            OutOfRangeError: If doc_id is not in [0, num_docs)
            ValueError: If k is negative
        """
        self._check_doc(doc_id)
        selected = select_top_k(self._theta[doc_id].as_array(), k)
        return [Topic(topic_id=topic_id, probability=prob) for topic_id, prob in selected]

    def _term_text(self, term_id: int) -> str:
        if self._vocabulary is None:
            return ""
        try:
            return self._vocabulary.term_text(term_id)
        except LookupError:
            logger.debug("No text for term %d", term_id)
            return ""

    def __repr__(self) -> str:
        return (f"TopicModel(num_topics={self._num_topics}, "
                f"num_words={self._num_words}, num_docs={self._num_docs})")


def load_topic_model(
    config: Union[Mapping[str, Any], TopicModelConfig],
    vocabulary: Optional[TermLookup] = None,
    progress: Optional[ProgressReporter] = None,
) -> TopicModel:
    """Load the snapshot named by a configuration.

    Args:
        config: Parsed TOML configuration with an ``[lda]`` group, or a
            TopicModelConfig
        vocabulary: Optional term lookup for top-k results
        progress: Optional progress reporter

    Returns:
        Loaded TopicModel

    Raises:
        ConfigurationError: If the [lda] group or model-prefix is missing
        MissingCheckpointError: If either checkpoint file is absent
        TruncatedStreamError: If either checkpoint file ends early
    """
    if not isinstance(config, TopicModelConfig):
        config = TopicModelConfig.from_toml(config)

    store = CheckpointStore(config.model_prefix)
    with store.resolve(config.result_file) as ckpt:
        logger.info("Loading topic model %s from %s", ckpt.label, store.directory)
        return TopicModel(ckpt.theta, ckpt.phi, vocabulary=vocabulary, progress=progress)
