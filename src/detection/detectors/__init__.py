"""Anti-pattern detector implementations.

Every detector has the signature ``(component, file_path, thresholds) ->
List[Issue]``. Detectors are organized by category:
- template: iteration keys, inline expressions, v-html, nesting
- architecture: oversized components, naming, prop drilling, coupling
- reactivity: ref/reactive misuse, computed purity, watchers
- state: Vuex and Pinia stores, provide/inject
- routing: navigation guards and route-level code splitting
- performance: large lists, shallow reactivity, listener leaks, imports
- type_safety: typed props, emits and refs
- testing: component test suites
"""
from __future__ import annotations

# Template
from src.detection.detectors.template import (
    detect_complex_template_expression,
    detect_deep_template_nesting,
    detect_vfor_index_as_key,
    detect_vfor_without_key,
    detect_vhtml_xss_risk,
    detect_vif_with_vfor,
)

# Architecture
from src.detection.detectors.architecture import (
    detect_god_component,
    detect_prop_drilling,
    detect_single_word_component_name,
    detect_tight_coupling,
)

# Reactivity
from src.detection.detectors.reactivity import (
    detect_computed_side_effects,
    detect_deep_watcher_overuse,
    detect_destructuring_reactivity_loss,
    detect_ref_reactive_confusion,
    detect_watcher_should_be_computed,
)

# State management
from src.detection.detectors.state import (
    detect_pinia_circular_dependency,
    detect_pinia_usestore_after_await,
    detect_state_localization_antipattern,
    detect_untyped_provide_inject,
    detect_vuex_async_in_mutation,
    detect_vuex_god_store,
)

# Routing
from src.detection.detectors.routing import (
    detect_god_guard_antipattern,
    detect_infinite_navigation_loop,
    detect_missing_lazy_loading,
)

# Performance
from src.detection.detectors.performance import (
    detect_event_listener_memory_leak,
    detect_full_library_import,
    detect_large_list_no_virtualization,
    detect_missing_shallow_reactivity,
)

# Type safety
from src.detection.detectors.type_safety import (
    detect_ref_type_inference_issues,
    detect_untyped_emits,
    detect_untyped_props,
)

# Testing
from src.detection.detectors.testing import (
    detect_implementation_testing,
    detect_pinia_state_leak,
    detect_snapshot_overuse,
)
