"""Mindify AI services: classification, extraction, grouping, projects."""

from mindify.ai.classifier import Classifier, LLMClassifier, OfflineClassifier
from mindify.ai.errors import AIServiceError, MalformedResponseError, UpstreamError
from mindify.ai.extractor import ItemExtractor
from mindify.ai.grouping import ThoughtGrouper
from mindify.ai.projects import ProjectService

__all__ = [
    "Classifier",
    "LLMClassifier",
    "OfflineClassifier",
    "ItemExtractor",
    "ThoughtGrouper",
    "ProjectService",
    "AIServiceError",
    "UpstreamError",
    "MalformedResponseError",
]
