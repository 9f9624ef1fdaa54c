#!/usr/bin/env python3
"""
Push a batch of synthetic cases through the pipeline without the HTTP layer
and print every dashboard event as it is published. Handy for checking a
config change (thresholds, providers, delays) end to end.
"""

from __future__ import annotations

import argparse
import asyncio
import json

import numpy as np

from mednexus_dashboard.config import DashboardSettings, load_config
from mednexus_dashboard.dashboard import DashboardContext
from mednexus_dashboard.models import MedicalCase
from mednexus_dashboard.models.events import to_jsonable
from mednexus_dashboard.utils import configure_logging

SYMPTOM_POOL = [
    "burning pain",
    "angiokeratoma",
    "hypohidrosis",
    "splenomegaly",
    "bone pain",
    "fatigue",
    "joint pain",
    "rash",
    "fever",
    "easy bruising",
]


def make_cases(count: int, seed: int) -> list[MedicalCase]:
    rng = np.random.default_rng(seed)
    cases = []
    for i in range(count):
        picks = rng.choice(SYMPTOM_POOL, size=int(rng.integers(2, 5)), replace=False)
        cases.append(
            MedicalCase(
                case_id=f"sim-{i:03d}",
                hospital_id="sim-hospital",
                symptoms=[str(s) for s in picks],
                age=int(rng.integers(1, 90)),
            )
        )
    return cases


async def run(config_path: str, count: int, seed: int) -> None:
    settings = DashboardSettings.from_config(load_config(config_path))
    configure_logging(settings.log_level)
    context = DashboardContext.from_settings(settings)
    context.subscribe(lambda event: print(json.dumps(event.to_dict())))

    await context.start()
    try:
        for case in make_cases(count, seed):
            context.submit_case(case)
        await context.wait_for_cases()
        await context.aggregator.refresh()
    finally:
        await context.stop()

    print("\nMetrics:", json.dumps(to_jsonable(context.get_metrics()), indent=2))
    print("Utilization:", json.dumps(context.feature_utilization(), indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description="Simulate dashboard case traffic.")
    parser.add_argument("--config", default="config.yaml", help="Path to config file.")
    parser.add_argument("--cases", type=int, default=5, help="Number of cases to submit.")
    parser.add_argument("--seed", type=int, default=7, help="Seed for synthetic symptoms.")
    args = parser.parse_args()
    asyncio.run(run(args.config, args.cases, args.seed))


if __name__ == "__main__":
    main()
