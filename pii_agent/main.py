import argparse
import asyncio
import sys

from pii_agent.anonymization.factory import SubstituteGeneratorFactory
from pii_agent.anonymization.models import SubstitutionResult
from pii_agent.classification.classifier import resolve_strategy
from pii_agent.classification.models import ModelInfo, Strategy
from pii_agent.config.settings import Settings
from pii_agent.database.connection import close_pool, init_pool
from pii_agent.detection.factory import DetectorFactory
from pii_agent.logging.logger import Log
from pii_agent.mapping.store import MappingStore
from pii_agent.persistence.base import STRATEGY_KEY, PreferenceStore
from pii_agent.persistence.factory import PreferenceStoreFactory
from pii_agent.workflow.outbound import prepare_outbound


async def preview(
    prompt: str,
    settings: Settings,
    strategy: Strategy | str | None = None,
) -> SubstitutionResult:
    """Show what would be sent: detect, substitute, and rewrite *prompt*."""
    selected = Strategy.parse(strategy or settings.default_strategy)
    classification = resolve_strategy(selected, prompt)
    Log.info(
        f"Strategy {classification.strategy.value}: {classification.rationale}"
    )
    detector = DetectorFactory.create(settings)
    try:
        detected = await detector.detect(prompt, classification.strategy)
    finally:
        await detector.aclose()

    generator = SubstituteGeneratorFactory.create(settings)
    return prepare_outbound(prompt, detected, MappingStore(), generator)


async def list_models(settings: Settings) -> list[ModelInfo]:
    """Models offered by the detector backend, or the built-in catalog."""
    detector = DetectorFactory.create(settings)
    try:
        return await detector.available_models()
    finally:
        await detector.aclose()


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pii-agent",
        description="Print a prompt with its personal data replaced by synthetic values.",
    )
    parser.add_argument("prompt", nargs="*", help="prompt text; read from stdin when omitted")
    parser.add_argument("--models", action="store_true", help="list detection models and exit")
    parser.add_argument("--strategy", help="select and remember a detection model key")
    return parser.parse_args(sys.argv[1:] if argv is None else argv)


def _run(args: argparse.Namespace, settings: Settings, preferences: PreferenceStore) -> None:
    if args.models:
        for model in asyncio.run(list_models(settings)):
            print(f"{model.key}\t{model.name}")
        return

    if args.strategy:
        try:
            strategy = Strategy.parse(args.strategy)
        except ValueError:
            Log.error(f"Unknown strategy '{args.strategy}'")
            raise SystemExit(2) from None
        preferences.set(STRATEGY_KEY, strategy.value)
        Log.info(f"Detection strategy set to {strategy.value}")

    prompt = " ".join(args.prompt) if args.prompt else sys.stdin.read()
    if not prompt.strip():
        Log.error("No prompt given")
        raise SystemExit(1)

    stored = preferences.get(STRATEGY_KEY, settings.default_strategy) or Strategy.AUTO.value
    try:
        selected = Strategy.parse(stored)
    except ValueError:
        Log.warning(f"Ignoring unknown stored strategy '{stored}'")
        selected = Strategy.AUTO
    result = asyncio.run(preview(prompt, settings, selected))
    for entity in result.applied:
        Log.debug(f"{entity.type.value} {entity.id} -> {entity.substitute}")
    print(result.text)


def main(argv: list[str] | None = None) -> None:
    """Entry point: read a prompt -> classify -> print the anonymized preview."""
    settings = Settings()
    Log.configure(settings.log_level)
    args = _parse_args(argv)

    uses_database = PreferenceStoreFactory.uses_database(settings)
    if uses_database:
        init_pool(settings)
    try:
        preferences = PreferenceStoreFactory.create(settings)
        _run(args, settings, preferences)
    finally:
        if uses_database:
            close_pool()


if __name__ == "__main__":
    main()
