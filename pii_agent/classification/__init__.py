from pii_agent.classification.classifier import classify, resolve_strategy
from pii_agent.classification.models import ClassificationResult, ModelInfo, Strategy

__all__ = ["ClassificationResult", "ModelInfo", "Strategy", "classify", "resolve_strategy"]
