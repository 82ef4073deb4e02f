"""
context_builder.py
==================
Resolve a story's variable pools into one concrete render context.

Pools are walked in declaration order so that, for a given PRNG stream,
the same draws land on the same pools every time:

    list pool    -> one variant picked uniformly
    mapping pool -> resolved recursively
    anything else-> copied through as-is

Mapping variants are shallow-copied before they enter the context so that
nothing done to a context can reach back into the shared story asset.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Sequence

from rng import SeededRandom


def pick_variant(variants: Sequence[Any], rng: SeededRandom) -> Any:
    if not variants:
        return None
    variant = variants[rng.index(len(variants))]
    if isinstance(variant, Mapping):
        return dict(variant)
    return variant


def build_context(variables: Mapping[str, Any], rng: SeededRandom) -> Dict[str, Any]:
    """Draw one value per pool of `variables`, recursing into nested pools."""
    context: Dict[str, Any] = {}
    for key, value in variables.items():
        if isinstance(value, (list, tuple)):
            context[key] = pick_variant(value, rng)
        elif isinstance(value, Mapping):
            context[key] = build_context(value, rng)
        else:
            context[key] = value
    return context
