"""CLI for running naive-vs-improved elevator scenarios defined in JSON configs."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, Optional

from simulation import SimulationConfig
from simulation.session import ComparisonSession

DEFAULT_DURATION = 300


def build_session(config: Dict, seed: Optional[int] = None) -> ComparisonSession:
    simulation_config = SimulationConfig.from_dict(config)
    if seed is None:
        seed = config.get("random_seed")
    return ComparisonSession(simulation_config, seed=seed)


def run_session(session: ComparisonSession, duration: int) -> Dict:
    session.run(duration)
    return session.state()


def save_results(output_path: Optional[Path], data: Dict) -> None:
    if not output_path:
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("config", type=Path, help="Path to a JSON scenario configuration file")
    parser.add_argument("--duration", type=int, help="Number of ticks to run (defaults to the config's duration)")
    parser.add_argument("--seed", type=int, help="Random seed for traffic generation")
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional file path to write the final state and history as JSON",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = json.loads(args.config.read_text())
    duration = args.duration or config.get("duration", DEFAULT_DURATION)
    session = build_session(config, args.seed)
    state = run_session(session, duration)

    results = {
        "scenario": config.get("name", args.config.stem),
        "description": config.get("description"),
        "duration": session.current_tick,
        "final_state": state,
    }
    save_results(args.output, results)

    print(f"Scenario: {results['scenario']}")
    if results["description"]:
        print(results["description"])
    print(f"Ran {session.current_tick} ticks ({session.active_scenario})")
    for key in ("naiveWorld", "improvedWorld"):
        stats = state[key]["stats"]
        print(f"{stats['algorithmName']}:")
        print(f"  delivered: {stats['totalDelivered']}")
        print(f"  avg wait: {stats['avgWaitingTime']:.2f}")
        print(f"  avg transit: {stats['avgTransitTime']:.2f}")
        print(f"  utilization: {stats['elevatorUtilization']:.2%}")
    for phase in state["phaseHistory"]:
        print(
            f"{phase['phaseName']} ({phase['duration']} ticks): "
            f"naive {phase['naive']['delivered']} delivered, "
            f"improved {phase['improved']['delivered']} delivered"
        )
    if args.output:
        print(f"Saved results to {args.output}")


if __name__ == "__main__":
    main()
