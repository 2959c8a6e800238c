"""Configuration management for topicstore.

Models are configured from the ``[lda]`` group of a TOML file:

    [lda]
    inference = "gibbs"
    topics = 10
    alpha = 0.1
    beta = 0.1
    max-iters = 1000
    save-period = 50
    model-prefix = "lda-model"
    result-file = "final"
"""
import os
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from dotenv import load_dotenv

from .exceptions import ConfigurationError

LDA_GROUP = "lda"

# Keys the training driver requires in the [lda] group
REQUIRED_LDA_PARAMETERS = (
    "alpha",
    "beta",
    "topics",
    "inference",
    "max-iters",
    "model-prefix",
)


def load_config_file(path: Union[str, Path]) -> dict:
    """Parse a TOML configuration file.

    Raises:
        ConfigurationError: If the file is missing or not valid TOML
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e


def get_lda_group(config: Mapping[str, Any], file_name: str = "configuration") -> Mapping[str, Any]:
    """Return the ``[lda]`` table of a parsed configuration.

    Raises:
        ConfigurationError: If the group is absent or not a table
    """
    group = config.get(LDA_GROUP)
    if not isinstance(group, Mapping):
        raise ConfigurationError(
            f"Missing {LDA_GROUP} configuration group in {file_name}"
        )
    return group


def check_lda_config(config: Mapping[str, Any], file_name: str = "configuration") -> Mapping[str, Any]:
    """Check that every training parameter is present.

    Returns:
        The ``[lda]`` group

    Raises:
        ConfigurationError: Naming the first missing parameter and the file
    """
    group = get_lda_group(config, file_name)
    for param in REQUIRED_LDA_PARAMETERS:
        if param not in group:
            raise ConfigurationError(
                f"Missing {LDA_GROUP} configuration parameter {param} in {file_name}"
            )
    return group


@dataclass
class TopicModelConfig:
    """Where to find a trained model.

    Attributes:
        model_prefix: Directory holding the checkpoint files
        result_file: Snapshot label to load
    """

    model_prefix: str
    result_file: str = "final"

    @classmethod
    def from_toml(cls, config: Mapping[str, Any], file_name: str = "configuration") -> "TopicModelConfig":
        """Read ``model-prefix`` and ``result-file`` from the ``[lda]`` group.

        Raises:
            ConfigurationError: If the group or ``model-prefix`` is missing
        """
        group = get_lda_group(config, file_name)
        prefix = group.get("model-prefix")
        if not prefix:
            raise ConfigurationError(f"Missing model-prefix key in {file_name}")
        return cls(
            model_prefix=str(prefix),
            result_file=str(group.get("result-file", "final")),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TopicModelConfig":
        return cls.from_toml(load_config_file(path), file_name=str(path))

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "TopicModelConfig":
        """Load configuration from environment variables.

        Args:
            env_file: Path to .env file (optional)

        Returns:
            TopicModelConfig with values from environment

        Raises:
            ConfigurationError: If TOPICSTORE_MODEL_PREFIX is not set
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        prefix = os.getenv("TOPICSTORE_MODEL_PREFIX")
        if not prefix:
            raise ConfigurationError("TOPICSTORE_MODEL_PREFIX is not set")
        return cls(
            model_prefix=prefix,
            result_file=os.getenv("TOPICSTORE_RESULT_FILE", "final"),
        )

    @classmethod
    def from_dict(cls, config_dict: dict) -> "TopicModelConfig":
        return cls(**{k: v for k, v in config_dict.items() if k in cls.__annotations__})


@dataclass
class LdaConfig:
    """Training parameters shared by every inference strategy.

    Attributes:
        inference: Inference method name ('gibbs', 'pargibbs', 'cvb', 'scvb')
        topics: Number of topics
        alpha: Symmetric document-topic Dirichlet prior
        beta: Symmetric topic-term Dirichlet prior
        max_iters: Iteration budget
        save_period: Write a checkpoint every this many iterations (None = never)
        model_prefix: Directory for checkpoints
        seed: Random seed; defaults to the current time
        result_file: Snapshot label written by save()
    """

    inference: str = "gibbs"
    topics: int = 10
    alpha: float = 0.1
    beta: float = 0.1
    max_iters: int = 1000
    save_period: Optional[int] = None
    model_prefix: str = "lda-model"
    seed: Optional[int] = None
    result_file: str = "final"

    def __post_init__(self):
        if self.seed is None:
            self.seed = time.time_ns() & 0xFFFFFFFF
        if self.topics <= 0:
            raise ConfigurationError(f"topics must be positive, got {self.topics}")
        if self.save_period is not None and self.save_period <= 0:
            raise ConfigurationError(
                f"save-period must be positive, got {self.save_period}"
            )

    @classmethod
    def from_toml(cls, config: Mapping[str, Any], file_name: str = "configuration") -> "LdaConfig":
        """Build from a parsed configuration, checking required parameters.

        Raises:
            ConfigurationError: If a parameter is missing or has the wrong type
        """
        group = check_lda_config(config, file_name)

        def param(key: str, cast: Callable[[Any], Any], default: Any = None) -> Any:
            if key not in group:
                return default
            value = group[key]
            # TOML booleans would otherwise pass as 0 and 1
            if isinstance(value, bool) and cast is not str:
                value = str(value)
            try:
                return cast(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Invalid {LDA_GROUP} configuration parameter {key} in {file_name}: {e}"
                ) from e

        return cls(
            inference=param("inference", str),
            topics=param("topics", int),
            alpha=param("alpha", float),
            beta=param("beta", float),
            max_iters=param("max-iters", int),
            save_period=param("save-period", int),
            model_prefix=param("model-prefix", str),
            seed=param("seed", int),
            result_file=param("result-file", str, "final"),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "LdaConfig":
        return cls.from_toml(load_config_file(path), file_name=str(path))
