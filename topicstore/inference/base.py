"""Base interfaces for inference strategies.

The statistical update rules live in concrete strategies (Gibbs sampling,
collapsed variational Bayes, ...). This module only fixes what every
strategy must offer so its results can be checkpointed and queried:

- per-term and per-document probabilities for building the tables
- an iteration loop that checkpoints on a save period
- save() / load() through a CheckpointStore
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type, TypeVar

from ..checkpoint.store import CheckpointPaths, CheckpointStore
from ..config import LdaConfig
from ..core.distribution import DiscreteDistribution, DistributionTable
from ..core.models import CheckpointMetadata, CheckpointPair
from ..exceptions import ConfigurationError, InferenceError

logger = logging.getLogger(__name__)

# Method names accepted in the `inference` configuration key
KNOWN_METHODS: Tuple[str, ...] = ("gibbs", "pargibbs", "cvb", "scvb")


class InferenceStrategy(ABC):
    """Capabilities every inference strategy provides."""

    @abstractmethod
    def run(self, num_iters: int) -> None:
        """Run up to ``num_iters`` iterations of inference."""
        pass

    @abstractmethod
    def compute_term_topic_probability(self, term: int, topic: int) -> float:
        """Probability of ``term`` under ``topic``."""
        pass

    @abstractmethod
    def compute_doc_topic_probability(self, doc: int, topic: int) -> float:
        """Probability of ``topic`` in document ``doc``."""
        pass

    @abstractmethod
    def save(self) -> None:
        """Persist the final model."""
        pass

    @abstractmethod
    def load(self) -> None:
        """Restore the most recently recorded training state."""
        pass


class LdaModel(InferenceStrategy):
    """Shared state and checkpoint handling for LDA strategies.

    Subclasses implement ``perform_iteration``, the two ``compute_*``
    methods, ``restore`` and ``from_config``.

    Example:
        model = MyGibbs.from_config(config, LdaConfig.from_toml(config))
        model.run(model.config.max_iters)   # checkpoints every save_period
        model.save()                        # writes <prefix>/final.*.bin

    Args:
        num_docs: Number of documents in the corpus
        num_words: Vocabulary size
        config: Training parameters
    """

    def __init__(self, num_docs: int, num_words: int, config: LdaConfig):
        self.config = config
        self.store = CheckpointStore(config.model_prefix)
        self.iteration = 0
        self.converged = False
        self._num_docs = num_docs
        self._num_words = num_words

        logger.info(
            "LDA model: topics=%d alpha=%g beta=%g max_iters=%d save_period=%s "
            "prefix=%s seed=%d",
            config.topics, config.alpha, config.beta, config.max_iters,
            config.save_period, config.model_prefix, config.seed,
        )

    @classmethod
    @abstractmethod
    def from_config(cls, config: Mapping[str, Any], lda_config: LdaConfig) -> "LdaModel":
        """Build the strategy, loading its corpus as the configuration says."""
        pass

    @abstractmethod
    def perform_iteration(self, iteration: int) -> bool:
        """Run one iteration.

        Returns:
            True once the strategy considers itself converged
        """
        pass

    @abstractmethod
    def restore(self, pair: CheckpointPair) -> None:
        """Rebuild internal state from loaded tables."""
        pass

    def num_topics(self) -> int:
        return self.config.topics

    def num_words(self) -> int:
        return self._num_words

    def num_docs(self) -> int:
        return self._num_docs

    # =========================================================================
    # Iteration
    # =========================================================================

    def run(self, num_iters: int) -> None:
        """Run iterations after the current one, checkpointing on the save period."""
        start = self.iteration + 1
        for iteration in range(start, start + num_iters):
            converged = self.perform_iteration(iteration)
            self.iteration = iteration
            self.checkpoint(iteration)
            if converged:
                self.converged = True
                logger.info("Converged after %d iterations", iteration)
                break

    def should_checkpoint(self, iteration: int) -> bool:
        period = self.config.save_period
        return period is not None and iteration % period == 0

    def checkpoint(self, iteration: int) -> Optional[CheckpointPaths]:
        """Write ``results-<iteration>`` if the save period says so."""
        if not self.should_checkpoint(iteration):
            return None
        return self.save_results(self.store.iteration_label(iteration))

    # =========================================================================
    # Tables
    # =========================================================================

    def topic_term_table(self) -> DistributionTable:
        return DistributionTable(
            (
                DiscreteDistribution([
                    self.compute_term_topic_probability(term, topic)
                    for term in range(self._num_words)
                ])
                for topic in range(self.num_topics())
            ),
            num_outcomes=self._num_words,
            kind="topic",
        )

    def doc_topic_table(self) -> DistributionTable:
        return DistributionTable(
            (
                DiscreteDistribution([
                    self.compute_doc_topic_probability(doc, topic)
                    for topic in range(self.num_topics())
                ])
                for doc in range(self._num_docs)
            ),
            num_outcomes=self.num_topics(),
            kind="document",
        )

    def checkpoint_pair(self) -> CheckpointPair:
        return CheckpointPair(
            doc_topic=self.doc_topic_table(),
            topic_term=self.topic_term_table(),
        )

    def metadata(self) -> CheckpointMetadata:
        return CheckpointMetadata(
            num_topics=self.num_topics(),
            num_words=self._num_words,
            num_docs=self._num_docs,
            iteration=self.iteration,
            converged=self.converged,
            alpha=self.config.alpha,
            beta=self.config.beta,
            max_iters=self.config.max_iters,
            save_period=self.config.save_period,
            seed=self.config.seed,
            model_prefix=self.config.model_prefix,
        )

    # =========================================================================
    # Persistence
    # =========================================================================

    def save_results(self, label: str) -> CheckpointPaths:
        """Write the current tables under ``label`` and record training state."""
        paths = self.store.write(self.checkpoint_pair(), label)
        self.store.write_state(self.metadata())
        return paths

    def save(self) -> None:
        self.save_results(self.config.result_file)

    def load(self) -> None:
        """Resume from the recorded state.

        Loads ``results-<iteration>`` when it exists, otherwise the
        configured result file.

        Raises:
            InferenceError: If no state was recorded or dimensions differ
            MissingCheckpointError: If the snapshot files are absent
            CorruptCheckpointError: If the recorded state is unreadable
        """
        state = self.store.read_state()
        if state is None:
            raise InferenceError(f"no training state recorded in {self.store.directory}")

        label = self.store.iteration_label(state.iteration)
        if not self.store.exists(label):
            label = self.config.result_file
        pair = self.store.read(label)

        expected = (self.num_topics(), self._num_words, self._num_docs)
        found = (pair.num_topics, pair.num_words, pair.num_docs)
        if expected != found:
            raise InferenceError(
                f"checkpoint {label} has (topics, words, docs) = {found}, "
                f"model expects {expected}"
            )

        self.restore(pair)
        self.iteration = state.iteration
        self.converged = state.converged
        logger.info("Resumed from %s at iteration %d", label, self.iteration)


# =========================================================================
# Registry
# =========================================================================

_REGISTRY: Dict[str, Type[LdaModel]] = {}

ModelT = TypeVar("ModelT", bound=Type[LdaModel])


def register_inference(name: str) -> Callable[[ModelT], ModelT]:
    """Class decorator registering a strategy under a known method name.

    Example:
        @register_inference("gibbs")
        class LdaGibbs(LdaModel):
            ...
    """
    if name not in KNOWN_METHODS:
        raise ValueError(f"unknown inference method {name!r}; expected one of {KNOWN_METHODS}")

    def decorator(cls: ModelT) -> ModelT:
        _REGISTRY[name] = cls
        return cls

    return decorator


def get_inference(name: str) -> Type[LdaModel]:
    """Look up the strategy registered for ``name``.

    Raises:
        ConfigurationError: If the name is not a known method
        InferenceError: If no strategy is registered for a known method
    """
    if name not in KNOWN_METHODS:
        raise ConfigurationError(
            "Incorrect method selected: must be " + ", ".join(KNOWN_METHODS[:-1])
            + f", or {KNOWN_METHODS[-1]}"
        )
    try:
        return _REGISTRY[name]
    except KeyError:
        raise InferenceError(f"no implementation registered for inference method {name!r}") from None


def registered_methods() -> Tuple[str, ...]:
    return tuple(sorted(_REGISTRY))
