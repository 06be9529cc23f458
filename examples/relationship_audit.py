#!/usr/bin/env python3
"""
relationship_audit.py: Auditing Parent and Dependency Links
============================================================

A training pipeline records events that point at each other through
parent_id and depends_on. Before the chain is stored it is validated:
dangling references and circular reasoning are reported as errors
rather than raised.
"""

import logging

from causal_trace import (
    Chain,
    Event,
    EventType,
    RelationshipGraph,
    get_leaf_events,
    get_root_events,
    validate,
)


def build_pipeline() -> Chain:
    return Chain("training-pipeline", events=(
        Event(EventType.STAGE_STARTED, "Load dataset", "Pipeline entry", id="load", stage_id="data"),
        Event(EventType.STAGE_COMPLETED, "80/20 split", "Standard holdout", id="split",
              parent_id="load", stage_id="data"),
        Event(EventType.TRAINING_STARTED, "Train baseline", "Reference model", id="train",
              parent_id="split", stage_id="training", experiment_id="exp-001"),
        Event(EventType.METRIC_RECORDED, "Score on holdout", "Compare against baseline",
              id="eval", parent_id="train", depends_on=("split",), stage_id="evaluation"),
    ))


def report(chain: Chain) -> None:
    result = validate(chain)
    if result.ok:
        print(f"  {chain.name}: OK")
    else:
        print(f"  {chain.name}: {result.error.format()}")


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    chain = build_pipeline()
    graph = RelationshipGraph(chain)

    print("Roots: ", [e.id for e in get_root_events(chain)])
    print("Leaves:", [e.id for e in get_leaf_events(chain)])
    print("Ancestors of eval:", [e.id for e in graph.ancestors("eval")])
    print("Children of load: ", [e.id for e in graph.children("load").unwrap()])

    missing = graph.children("nope")
    print("Children of nope: ", missing.error.format())

    print("\nValidation:")
    report(chain)

    dangling = chain.add_event(Event(
        EventType.CHECKPOINT_SAVED, "Save checkpoint", "After upload", parent_id="upload",
    ))
    report(dangling)

    looped = Chain("looped", events=(
        Event(EventType.HYPOTHESIS_FORMED, "A", "Because B", id="a", depends_on=("b",)),
        Event(EventType.HYPOTHESIS_FORMED, "B", "Because A", id="b", depends_on=("a",)),
    ))
    report(looped)


if __name__ == "__main__":
    main()
