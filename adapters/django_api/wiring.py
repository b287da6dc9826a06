"""
SpaceFlow Django Adapter Wiring
=================================
Constructs the process-wide store and intent pipeline from settings.

This module is adapter-only glue:
- no engine contract changes
- one InventoryStore per process, in memory
- tests swap the singleton with configure_dependencies()
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from django.conf import settings

from ai.pipeline import IntentPipeline
from ai.translator import IntentTranslator
from core.time.clock import Clock, SystemClock
from engines.warehouse.dataset import generate_demo_pallets, load_pallets
from engines.warehouse.store import InventoryStore


logger = logging.getLogger("spaceflow.api")

_DEPENDENCIES_LOCK = threading.Lock()
_DEPENDENCIES: Optional["SpaceflowDependencies"] = None


@dataclass(frozen=True)
class SpaceflowDependencies:
    store: InventoryStore
    pipeline: IntentPipeline
    clock: Clock


def _spaceflow_setting(name: str):
    return settings.SPACEFLOW[name]


def _create_dependencies() -> SpaceflowDependencies:
    clock = SystemClock()
    dataset_path = _spaceflow_setting("PALLET_DATASET_PATH")
    if dataset_path:
        pallets = load_pallets(dataset_path)
        logger.info(f"Loaded pallet snapshot from {dataset_path}")
    else:
        pallets = generate_demo_pallets(
            _spaceflow_setting("DEMO_PALLET_COUNT"), now=clock.now_utc(),
        )
        logger.info(f"Generated demo fleet of {len(pallets)} pallets")

    store = InventoryStore(
        pallets,
        clock=clock,
        simulation_period_s=_spaceflow_setting("SIMULATION_PERIOD_S"),
    )
    translator = IntentTranslator(
        model=_spaceflow_setting("OPENAI_MODEL"),
        temperature=_spaceflow_setting("INTENT_TRANSLATOR_TEMPERATURE"),
        timeout_s=_spaceflow_setting("INTENT_TRANSLATOR_TIMEOUT_S"),
    )
    return SpaceflowDependencies(
        store=store,
        pipeline=IntentPipeline(store, translator),
        clock=clock,
    )


def build_dependencies() -> SpaceflowDependencies:
    """
    Lazy singleton wiring for adapter runtime.
    """
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        if _DEPENDENCIES is None:
            _DEPENDENCIES = _create_dependencies()
        return _DEPENDENCIES


def configure_dependencies(dependencies: SpaceflowDependencies) -> None:
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        _DEPENDENCIES = dependencies


def reset_dependencies() -> None:
    """Drop the singleton, stopping its simulation first."""
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        if _DEPENDENCIES is not None:
            _DEPENDENCIES.store.stop_simulation()
        _DEPENDENCIES = None
