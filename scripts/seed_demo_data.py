"""Write synthetic expenses and a few budgets into a local data directory.

Existing files are replaced. Point the app at the same directory through
MOONLIGHT_DATA_DIR (default: data/).
"""

from __future__ import annotations

import argparse
from pathlib import Path

from moonlight import config, store, synth

DEMO_BUDGETS = {"餐饮": 1500.0, "交通": 400.0, "购物": 800.0, "娱乐": 300.0}


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo expenses and budgets")
    parser.add_argument("--rows", type=int, default=synth.DEFAULT_ROWS)
    parser.add_argument("--days", type=int, default=synth.DEFAULT_DAYS)
    parser.add_argument("--seed", type=int, default=synth.DEFAULT_SEED)
    parser.add_argument("--output", type=Path, default=None)
    args = parser.parse_args()

    settings = config.load_settings()
    config.configure_logging(settings.log_level)
    output = args.output or settings.data_dir

    records = store.RecordStore(store.JsonFileStore(output)).load()
    records.clear("expenses")
    records.clear("budgets")
    for expense in synth.generate_sample_expenses(rows=args.rows, seed=args.seed, days=args.days):
        records.add_expense(
            expense["amount"],
            expense["category"],
            expense["date"],
            note=expense["note"],
            mood=expense["mood"],
        )
    for category, amount in DEMO_BUDGETS.items():
        records.upsert_budget(category, amount)

    print(f"Wrote {len(records.expenses)} expenses and {len(records.budgets)} budgets to {output}")


if __name__ == "__main__":
    main()
