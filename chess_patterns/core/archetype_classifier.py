# chess_patterns/core/archetype_classifier.py
"""
Assigns a named archetype to a temporal signature using an ordered rule table.

The registry is data: an ordered list of `(label, predicate)` rules. The first
predicate that returns True names the archetype; when none does, the
registry's default label is used. Adding an archetype is a data change in the
domain's registry module, never a change here.
"""
from typing import Callable, Iterable, Mapping, Optional, Tuple

import structlog

from chess_patterns.types import (ArchetypeDefinition, ArchetypeRegistry,
                                  ArchetypeRule, TemporalSignature)

logger = structlog.get_logger(__name__)


def build_registry(
    domain: str,
    version: str,
    pipeline: Iterable[Tuple[str, Callable[[TemporalSignature], bool], str]],
    default_label: str,
    definitions: Optional[Iterable[ArchetypeDefinition]] = None,
) -> ArchetypeRegistry:
    """Builds a registry from `(label, predicate, description)` tuples in priority order."""
    rules = tuple(ArchetypeRule(label=label, predicate=predicate, description=description)
                  for label, predicate, description in pipeline)
    labels = [rule.label for rule in rules]
    if len(set(labels)) != len(labels):
        raise ValueError(f"Duplicate archetype labels in registry '{domain}'.")
    if default_label in labels:
        raise ValueError(f"Default archetype '{default_label}' must not also be a rule.")
    definition_map: Mapping[str, ArchetypeDefinition] = {d.label: d for d in (definitions or ())}
    return ArchetypeRegistry(
        domain=domain, version=version, rules=rules,
        default_label=default_label, definitions=definition_map,
    )


def classify_archetype(signature: TemporalSignature, registry: ArchetypeRegistry) -> str:
    """
    Returns the label of the first rule whose predicate matches, or the default.

    Never raises: a predicate that raises is logged and treated as not matching.
    """
    for rule in registry.rules:
        try:
            matched = rule.predicate(signature)
        except Exception as e:
            logger.error(
                "Archetype predicate failed; treating as no match.",
                registry=registry.domain, archetype=rule.label, error=str(e), exc_info=True
            )
            continue
        if matched:
            return rule.label
    return registry.default_label
