"""Utility script to print the analytics payload for a sample dataset."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict

from moonlight import aggregate, config, correlate, insights, synth, utils


def main() -> None:
    parser = argparse.ArgumentParser(description="Print analytics and insights for synthetic expenses")
    parser.add_argument("--rows", type=int, default=synth.DEFAULT_ROWS)
    parser.add_argument("--seed", type=int, default=synth.DEFAULT_SEED)
    parser.add_argument("--window", type=int, default=7, help="Trend window in days")
    args = parser.parse_args()

    settings = config.load_settings()
    config.configure_logging(settings.log_level)

    expenses = synth.generate_sample_expenses(rows=args.rows, seed=args.seed)
    month = utils.month_key(utils.today())
    payload = {
        "category_totals": aggregate.category_totals(expenses),
        "daily_totals": aggregate.daily_totals(expenses, args.window),
        "monthly_category_spend": aggregate.monthly_category_spend(expenses, month),
        "mood_correlation": correlate.correlate_moods(expenses, month),
        "insights": asdict(insights.generate_insights(expenses, settings=settings)),
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


if __name__ == "__main__":
    main()
