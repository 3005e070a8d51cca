"""Central registry for anti-pattern detectors."""
from __future__ import annotations

from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

from src.detection.core.models import Issue, PatternId
from src.detection.core.thresholds import ThresholdSet
from src.detection.detectors import (
    detect_complex_template_expression,
    detect_computed_side_effects,
    detect_deep_template_nesting,
    detect_deep_watcher_overuse,
    detect_destructuring_reactivity_loss,
    detect_event_listener_memory_leak,
    detect_full_library_import,
    detect_god_component,
    detect_god_guard_antipattern,
    detect_implementation_testing,
    detect_infinite_navigation_loop,
    detect_large_list_no_virtualization,
    detect_missing_lazy_loading,
    detect_missing_shallow_reactivity,
    detect_pinia_circular_dependency,
    detect_pinia_state_leak,
    detect_pinia_usestore_after_await,
    detect_prop_drilling,
    detect_ref_reactive_confusion,
    detect_ref_type_inference_issues,
    detect_single_word_component_name,
    detect_snapshot_overuse,
    detect_state_localization_antipattern,
    detect_tight_coupling,
    detect_untyped_emits,
    detect_untyped_props,
    detect_untyped_provide_inject,
    detect_vfor_index_as_key,
    detect_vfor_without_key,
    detect_vhtml_xss_risk,
    detect_vif_with_vfor,
    detect_vuex_async_in_mutation,
    detect_vuex_god_store,
    detect_watcher_should_be_computed,
)
from src.detection.parser import ParsedComponent


Detector = Callable[[ParsedComponent, str, ThresholdSet], List[Issue]]


class DetectorEntry(NamedTuple):
    pattern_id: PatternId
    category: str
    run: Detector


DETECTOR_REGISTRY: Tuple[DetectorEntry, ...] = (
    # template
    DetectorEntry(PatternId.VIF_WITH_VFOR, "template", detect_vif_with_vfor),
    DetectorEntry(PatternId.VFOR_WITHOUT_KEY, "template", detect_vfor_without_key),
    DetectorEntry(PatternId.VFOR_INDEX_AS_KEY, "template", detect_vfor_index_as_key),
    DetectorEntry(PatternId.COMPLEX_TEMPLATE_EXPRESSION, "template", detect_complex_template_expression),
    DetectorEntry(PatternId.VHTML_XSS_RISK, "template", detect_vhtml_xss_risk),
    DetectorEntry(PatternId.DEEP_TEMPLATE_NESTING, "template", detect_deep_template_nesting),
    # architecture
    DetectorEntry(PatternId.GOD_COMPONENT, "architecture", detect_god_component),
    DetectorEntry(PatternId.SINGLE_WORD_COMPONENT_NAME, "architecture", detect_single_word_component_name),
    DetectorEntry(PatternId.PROP_DRILLING, "architecture", detect_prop_drilling),
    DetectorEntry(PatternId.TIGHT_COUPLING, "architecture", detect_tight_coupling),
    # reactivity
    DetectorEntry(PatternId.REF_REACTIVE_CONFUSION, "reactivity", detect_ref_reactive_confusion),
    DetectorEntry(PatternId.DESTRUCTURING_REACTIVITY_LOSS, "reactivity", detect_destructuring_reactivity_loss),
    DetectorEntry(PatternId.COMPUTED_SIDE_EFFECTS, "reactivity", detect_computed_side_effects),
    DetectorEntry(PatternId.DEEP_WATCHER_OVERUSE, "reactivity", detect_deep_watcher_overuse),
    DetectorEntry(PatternId.WATCHER_SHOULD_BE_COMPUTED, "reactivity", detect_watcher_should_be_computed),
    # state
    DetectorEntry(PatternId.VUEX_ASYNC_IN_MUTATION, "state", detect_vuex_async_in_mutation),
    DetectorEntry(PatternId.VUEX_GOD_STORE, "state", detect_vuex_god_store),
    DetectorEntry(PatternId.PINIA_CIRCULAR_DEPENDENCY, "state", detect_pinia_circular_dependency),
    DetectorEntry(PatternId.PINIA_USESTORE_AFTER_AWAIT, "state", detect_pinia_usestore_after_await),
    DetectorEntry(PatternId.STATE_LOCALIZATION_ANTIPATTERN, "state", detect_state_localization_antipattern),
    DetectorEntry(PatternId.UNTYPED_PROVIDE_INJECT, "state", detect_untyped_provide_inject),
    # routing
    DetectorEntry(PatternId.INFINITE_NAVIGATION_LOOP, "routing", detect_infinite_navigation_loop),
    DetectorEntry(PatternId.MISSING_LAZY_LOADING, "routing", detect_missing_lazy_loading),
    DetectorEntry(PatternId.GOD_GUARD_ANTIPATTERN, "routing", detect_god_guard_antipattern),
    # performance
    DetectorEntry(PatternId.LARGE_LIST_NO_VIRTUALIZATION, "performance", detect_large_list_no_virtualization),
    DetectorEntry(PatternId.MISSING_SHALLOW_REACTIVITY, "performance", detect_missing_shallow_reactivity),
    DetectorEntry(PatternId.EVENT_LISTENER_MEMORY_LEAK, "performance", detect_event_listener_memory_leak),
    DetectorEntry(PatternId.FULL_LIBRARY_IMPORT, "performance", detect_full_library_import),
    # type-safety
    DetectorEntry(PatternId.UNTYPED_PROPS, "type-safety", detect_untyped_props),
    DetectorEntry(PatternId.UNTYPED_EMITS, "type-safety", detect_untyped_emits),
    DetectorEntry(PatternId.REF_TYPE_INFERENCE_ISSUES, "type-safety", detect_ref_type_inference_issues),
    # testing
    DetectorEntry(PatternId.IMPLEMENTATION_TESTING, "testing", detect_implementation_testing),
    DetectorEntry(PatternId.PINIA_STATE_LEAK, "testing", detect_pinia_state_leak),
    DetectorEntry(PatternId.SNAPSHOT_OVERUSE, "testing", detect_snapshot_overuse),
)


def _build_categories() -> Dict[str, List[str]]:
    categories: Dict[str, List[str]] = {}
    for entry in DETECTOR_REGISTRY:
        categories.setdefault(entry.category, []).append(entry.pattern_id.value)
    return categories


# Detector categories for running a subset of the catalog
DETECTOR_CATEGORIES: Dict[str, List[str]] = _build_categories()


def list_pattern_ids() -> List[str]:
    return sorted(entry.pattern_id.value for entry in DETECTOR_REGISTRY)


def list_detector_categories() -> Dict[str, List[str]]:
    """Return detector categories with their pattern ids."""
    return {category: list(ids) for category, ids in DETECTOR_CATEGORIES.items()}


def get_detector(pattern_id: str) -> DetectorEntry:
    for entry in DETECTOR_REGISTRY:
        if entry.pattern_id.value == pattern_id:
            return entry
    raise ValueError(f"Unknown pattern: {pattern_id}")


def select_detectors(categories: Optional[Iterable[str]] = None) -> Tuple[DetectorEntry, ...]:
    """Registry entries for the given categories, in registry order.

    ``None`` or an empty selection means the whole registry.
    """
    if not categories:
        return DETECTOR_REGISTRY
    wanted = list(categories)
    unknown = [name for name in wanted if name not in DETECTOR_CATEGORIES]
    if unknown:
        raise ValueError(
            f"Unknown category: {', '.join(unknown)}. Valid: {list(DETECTOR_CATEGORIES.keys())}"
        )
    return tuple(entry for entry in DETECTOR_REGISTRY if entry.category in wanted)


def verify_registry() -> None:
    """Raise ``RuntimeError`` unless every cataloged pattern has exactly one detector."""
    counts: Dict[PatternId, int] = {pattern: 0 for pattern in PatternId}
    for entry in DETECTOR_REGISTRY:
        counts[entry.pattern_id] += 1
    missing = sorted(pattern.value for pattern, count in counts.items() if count == 0)
    duplicated = sorted(pattern.value for pattern, count in counts.items() if count > 1)
    if missing or duplicated:
        raise RuntimeError(
            f"Detector registry mismatch (missing: {missing or 'none'}, duplicated: {duplicated or 'none'})"
        )


verify_registry()
