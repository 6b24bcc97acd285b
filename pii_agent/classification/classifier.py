from pii_agent.classification.models import ClassificationResult, Strategy
from pii_agent.classification.rules import (
    DEFAULT_RATIONALE,
    EMPTY_RATIONALE,
    RULES,
    ClassificationRule,
)


def classify(
    text: str | None,
    rules: tuple[ClassificationRule, ...] = RULES,
) -> ClassificationResult:
    """Pick a detection strategy for *text*.

    Total and deterministic: rules are evaluated in order and the first
    rule with a firing signal decides. Later rules are never consulted.
    """
    prompt = (text or "").strip()
    if not prompt:
        return ClassificationResult(Strategy.GENERAL_PURPOSE, EMPTY_RATIONALE)

    for rule in rules:
        signal = rule.first_match(prompt)
        if signal is not None:
            return ClassificationResult(rule.strategy, rule.rationale, signal)

    return ClassificationResult(Strategy.GENERAL_PURPOSE, DEFAULT_RATIONALE)


def resolve_strategy(selected: Strategy | str, text: str | None) -> ClassificationResult:
    """Classify *text* when *selected* is AUTO, otherwise honour the user's pick."""
    strategy = Strategy.parse(selected)
    if strategy is Strategy.AUTO:
        return classify(text)
    return ClassificationResult(strategy, f"Strategy '{strategy.value}' selected by user.")
