"""NLP package: language detection, hybrid classification and model training.

Public API::

    from uniscope.nlp import Classifier, ModelStore, TrainingCoordinator
"""

from uniscope.nlp.classifier import Classifier, arbitrate
from uniscope.nlp.language import detect_language
from uniscope.nlp.model_store import LanguageModel, ModelStore
from uniscope.nlp.rules import Category
from uniscope.nlp.training import TrainingCoordinator, TrainingReport

__all__ = [
    "Category",
    "Classifier",
    "LanguageModel",
    "ModelStore",
    "TrainingCoordinator",
    "TrainingReport",
    "arbitrate",
    "detect_language",
]
