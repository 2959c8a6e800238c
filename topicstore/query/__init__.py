"""Read-only queries against a trained topic model."""

from .engine import TopicModel, load_topic_model
from .topk import TopKSelector, select_top_k

__all__ = ["TopicModel", "load_topic_model", "TopKSelector", "select_top_k"]
