#!/usr/bin/env python3
"""
chain_comparison.py: Comparing Two Generation Runs
===================================================

Two independent runs of the same code generation task record their
reasoning as Chains. Event ids are random per run, so the comparison
falls back to content matching and reports how the second run's
decisions and confidence drifted.

Key Concepts:
    - Building Chains copy-on-write with add_event()
    - compare() with the default AUTO strategy
    - Forcing a strategy with CompareOptions
    - Reading added/removed/modified and confidence deltas
"""

from causal_trace import (
    Chain,
    CompareOptions,
    Event,
    EventType,
    MatchStrategy,
    compare,
)


def build_run(name: str, supervisor_confidence: float, extra: bool) -> Chain:
    chain = Chain(name, description="Rate limiter implementation")
    chain = chain.add_event(Event(
        EventType.HYPOTHESIS_FORMED,
        "Use GenServer",
        "Limiter state lives in one process",
        alternatives=("Agent", "ETS table"),
        confidence=0.85,
    ))
    chain = chain.add_event(Event(
        EventType.PATTERN_APPLIED,
        "Apply Supervisor",
        "Restart the limiter on crash",
        confidence=supervisor_confidence,
    ))
    if extra:
        chain = chain.add_event(Event(
            EventType.CONSTRAINT_EVALUATED,
            "Bound bucket size",
            "Memory must stay flat under load",
            confidence=0.6,
        ))
    return chain


def print_diff(title: str, diff) -> None:
    print(f"\n{'=' * 60}")
    print(title)
    print(f"{'=' * 60}")
    print(f"  Strategy:   {diff.match_strategy.value}")
    print(f"  Summary:    {diff.summary}")
    print(f"  Similarity: {diff.similarity_score:.2f}")

    for event in diff.added:
        print(f"  + {event}")
    for event in diff.removed:
        print(f"  - {event}")
    for modified in diff.modified:
        print(f"  ~ {modified.key}: {', '.join(modified.fields)}")
    for key, delta in diff.confidence_deltas.items():
        print(f"    confidence {key}: {delta:+.2f}")


def main():
    run1 = build_run("run-1", supervisor_confidence=0.5, extra=False)
    run2 = build_run("run-2", supervisor_confidence=0.75, extra=True)

    print_diff("AUTO matching (ids differ, content keys used)", compare(run1, run2).unwrap())

    result = compare(run1, run2, CompareOptions(match_by=MatchStrategy.ID))
    print_diff("ID matching (nothing lines up)", result.unwrap())

    result = compare(run1, run2, CompareOptions(match_by="semantic"))
    if not result.ok:
        print(f"\n{result.error.format_full()}")


if __name__ == "__main__":
    main()
