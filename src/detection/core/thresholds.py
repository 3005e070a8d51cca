"""Threshold set used by every detector.

Thresholds are immutable pydantic models. Callers never edit the defaults;
``resolve_thresholds`` produces a new set with user overrides shallow-merged
on top, and that value is passed explicitly into each detector.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.detection.core.models import Severity


class TierLimits(BaseModel):
    """Four ascending limits; a value strictly above a limit reaches that tier."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    low: float
    medium: float
    high: float
    critical: float

    def classify(self, value: float) -> Optional[Severity]:
        if value > self.critical:
            return Severity.CRITICAL
        if value > self.high:
            return Severity.HIGH
        if value > self.medium:
            return Severity.MEDIUM
        if value > self.low:
            return Severity.LOW
        return None


class ThresholdSet(BaseModel):
    """Named numeric limits keyed by camelCase aliases in config files."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    # Template
    template_expression_length: int = Field(default=40, alias="templateExpressionLength")
    template_expression_length_high: int = Field(default=80, alias="templateExpressionLengthHigh")
    template_expression_length_medium: int = Field(
        default=50, alias="templateExpressionLengthMedium"
    )
    template_member_chain_depth: int = Field(default=2, alias="templateMemberChainDepth")
    template_depth: int = Field(default=6, alias="templateDepth")
    template_depth_high: int = Field(default=7, alias="templateDepthHigh")
    deep_template_depth: int = Field(default=10, alias="deepTemplateDepth")

    # Component size
    component_script_length: int = Field(default=500, alias="componentScriptLength")
    component_method_count: int = Field(default=20, alias="componentMethodCount")
    component_props_count: int = Field(default=15, alias="componentPropsCount")
    component_computed_count: int = Field(default=10, alias="componentComputedCount")
    component_template_depth: int = Field(default=6, alias="componentTemplateDepth")
    prop_drilling_minimum: int = Field(default=2, alias="propDrillingMinimum")
    prop_drilling_high: int = Field(default=4, alias="propDrillingHigh")

    # Performance
    large_list_minimum: int = Field(default=100, alias="largeListMinimum")
    virtualization_threshold: int = Field(default=500, alias="virtualizationThreshold")
    large_list_high: int = Field(default=1000, alias="largeListHigh")
    large_list_critical: int = Field(default=5000, alias="largeListCritical")
    shallow_reactivity_minimum: int = Field(default=500, alias="shallowReactivityMinimum")
    shallow_reactivity_threshold: int = Field(default=1000, alias="shallowReactivityThreshold")

    # Reactivity
    deep_watcher_medium: int = Field(default=20, alias="deepWatcherMedium")
    deep_watcher_high: int = Field(default=50, alias="deepWatcherHigh")

    # State stores
    vuex_state_tiers: TierLimits = Field(
        default=TierLimits(low=10, medium=20, high=40, critical=50), alias="vuexStateTiers"
    )
    vuex_mutation_tiers: TierLimits = Field(
        default=TierLimits(low=10, medium=20, high=35, critical=50), alias="vuexMutationTiers"
    )
    vuex_action_tiers: TierLimits = Field(
        default=TierLimits(low=8, medium=15, high=25, critical=40), alias="vuexActionTiers"
    )
    vuex_getter_tiers: TierLimits = Field(
        default=TierLimits(low=10, medium=20, high=35, critical=50), alias="vuexGetterTiers"
    )
    vuex_store_line_tiers: TierLimits = Field(
        default=TierLimits(low=200, medium=400, high=700, critical=1000),
        alias="vuexStoreLineTiers",
    )

    # Routing
    guard_responsibility_tiers: TierLimits = Field(
        default=TierLimits(low=2, medium=3, high=4, critical=5), alias="guardResponsibilityTiers"
    )
    guard_line_tiers: TierLimits = Field(
        default=TierLimits(low=30, medium=50, high=75, critical=100), alias="guardLineTiers"
    )

    # Testing
    snapshot_test_ratio: float = Field(default=0.5, alias="snapshotTestRatio")
    snapshot_test_ratio_high: float = Field(default=0.8, alias="snapshotTestRatioHigh")

    # Path policy: a missing :key is CRITICAL when the path contains this marker.
    missing_key_escalation_marker: Optional[str] = Field(
        default="component", alias="missingKeyEscalationMarker"
    )


DEFAULT_THRESHOLDS = ThresholdSet()


def _field_names() -> Dict[str, str]:
    names: Dict[str, str] = {}
    for name, info in ThresholdSet.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


def list_threshold_names() -> list[str]:
    """Return every configurable threshold by its config-file (alias) name."""
    return [info.alias or name for name, info in ThresholdSet.model_fields.items()]


def resolve_thresholds(
    overrides: Union[ThresholdSet, Mapping[str, Any], None] = None,
    base: ThresholdSet = DEFAULT_THRESHOLDS,
) -> ThresholdSet:
    """Shallow-merge ``overrides`` onto ``base`` and return a new set.

    Keys may be given either as field names or camelCase aliases. Unknown keys
    and values of the wrong type raise ``ValueError``; ``base`` is never
    modified.
    """
    if overrides is None:
        return base
    if isinstance(overrides, ThresholdSet):
        return overrides

    known = _field_names()
    merged: Dict[str, Any] = base.model_dump()
    unknown = []
    for key, value in overrides.items():
        field_name = known.get(key)
        if field_name is None:
            unknown.append(key)
            continue
        merged[field_name] = value
    if unknown:
        raise ValueError(
            f"Unknown thresholds: {', '.join(sorted(unknown))}. "
            f"Valid thresholds are: {', '.join(list_threshold_names())}"
        )
    try:
        return ThresholdSet.model_validate(merged)
    except ValidationError as exc:
        raise ValueError(f"Invalid threshold values: {exc}") from exc


def thresholds_to_config(thresholds: ThresholdSet = DEFAULT_THRESHOLDS) -> Dict[str, Any]:
    """Serialize thresholds with their config-file names."""
    return thresholds.model_dump(by_alias=True)
