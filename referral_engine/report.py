"""
Referral network report.

Seeds a sample referral network, then prints structure, influence, growth
projections and bonus scenarios. Optionally writes the full report as JSON.

Usage:
    referral-report
    referral-report --users 100 --seed 7 --days 45 --out data/report.json
"""
from __future__ import annotations

import argparse
import json
import logging
import random
import time
from pathlib import Path
from typing import Optional

from referral_engine.analytics.bonus import bonus_curve
from referral_engine.analytics.growth import daily_growth
from referral_engine.config import EngineConfig, read_engine_config
from referral_engine.network import ReferralNetwork
from referral_engine.sample_data import (
    BONUS_SCENARIOS,
    default_adoption_probability,
    seed_sample_network,
)


def build_report(network: ReferralNetwork, config: EngineConfig, days: int) -> dict:
    """Everything a dashboard shows, as plain data."""
    stats = network.get_network_stats(config.top_n)
    projections = network.simulate_scenarios(days, config.scenarios)
    seed = network.total_referrals

    bonus_results = []
    for scenario_days, target in BONUS_SCENARIOS:
        bonus_results.append({
            "days":   scenario_days,
            "target": target,
            "bonus":  network.min_bonus_for_target(scenario_days, target, default_adoption_probability),
        })

    return {
        "stats":          stats,
        "top_by_reach":   network.get_top_referrers_by_reach(config.top_n),
        "reach":          network.get_reach_breakdown(),
        "projections":    projections,
        "daily_growth":   {name: daily_growth(s, seed) for name, s in projections.items()},
        "bonus":          bonus_results,
        "bonus_curve":    bonus_curve(default_adoption_probability, config.bonus),
    }


def print_summary(report: dict) -> None:
    stats = report["stats"]
    print(f"\nUsers: {stats['total_users']}  Referrals: {stats['total_referrals']}  "
          f"Avg/user: {stats['avg_referrals_per_user']:.2f}  Max depth: {stats['max_depth']}")

    print("\nTop referrers by reach:")
    for row in report["top_by_reach"][:5]:
        print(f"  {row['user_id']:<14} {row['reach']}")

    print("\nUnique-reach influencers (greedy approximation):")
    for row in stats["unique_influencers"][:5]:
        print(f"  {row['user_id']:<14} {row['unique_reach']}")

    print("\nFlow influencers:")
    for row in stats["flow_influencers"][:5]:
        print(f"  {row['user_id']:<14} {row['flow']}")

    print("\nProjected referrals (final day):")
    for name, series in report["projections"].items():
        final = series[-1] if series else 0
        print(f"  {name:<14} {final:,.1f}")

    print("\nMinimum bonus per target:")
    for row in report["bonus"]:
        bonus = f"${row['bonus']}" if row["bonus"] is not None else "Unachievable"
        print(f"  {row['target']:>5} hires in {row['days']:>2} days: {bonus}")


# ── CLI ───────────────────────────────────────────────────────────────────────

def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Referral network report on sample data.")
    parser.add_argument("--users",   type=int, default=50, help="Sample users to chain")
    parser.add_argument("--extra",   type=int, default=30, help="Extra outside candidates")
    parser.add_argument("--seed",    type=int, default=None, help="Random seed for sample data")
    parser.add_argument("--days",    type=int, default=30, help="Projection horizon in days")
    parser.add_argument("--config",  default=None, help="Engine config JSON (default: $REFERRAL_ENGINE_CONFIG)")
    parser.add_argument("--out",     default=None, help="Write the full report to this JSON path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    config = read_engine_config(Path(args.config) if args.config else None)
    network = ReferralNetwork(config.growth, config.bonus)

    t0 = time.time()
    print("Seeding sample network...", flush=True)
    seed_sample_network(network, args.users, args.extra, random.Random(args.seed))

    print("Computing report...", flush=True)
    report = build_report(network, config, args.days)
    report["elapsed_seconds"] = round(time.time() - t0, 2)

    print_summary(report)

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w") as f:
            json.dump(report, f, indent=2)
        print(f"\nDone in {report['elapsed_seconds']}s → {out_path}", flush=True)


if __name__ == "__main__":
    main()
