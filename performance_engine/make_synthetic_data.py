"""
performance_engine/make_synthetic_data.py

Creates a synthetic, labelled student performance dataset for demos: the eight
model inputs plus an `actual_grade` the evaluate CLI can compare predictions with.

The label comes from the fallback formula plus noise, so the fallback scorer
should agree with it most of the time but not always.

Outputs:
  data/students_synthetic.csv
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from performance_engine.config import DEFAULT_DATA_PATH
from performance_engine.data_dictionary import FEATURE_COLUMNS
from performance_engine.scoring import classify_grade, fallback_raw_score, to_score


def generate_student_dataset(
    n_students: int = 3000,
    random_state: int = 42,
    label_noise: float = 6.0,
) -> pd.DataFrame:
    rng = np.random.default_rng(random_state)

    # --- Attendance skews high, like real registers
    attendance_percent = np.clip(rng.normal(82, 12, size=n_students), 0, 100).round(0)
    study_hours_per_week = np.clip(rng.gamma(3.0, 4.0, size=n_students), 0, 30).round(1)

    # --- Socioeconomic bands
    parent_education_level = rng.choice(5, size=n_students, p=[0.10, 0.30, 0.25, 0.25, 0.10])
    income_level = rng.choice(4, size=n_students, p=[0.25, 0.35, 0.28, 0.12])

    # --- Engagement and access; better-off households get a small bump
    extracurricular_score = np.clip(rng.poisson(2.2, size=n_students), 0, 5)
    resources_score = np.clip(
        rng.poisson(1.5, size=n_students) + income_level // 2 + 1, 0, 5
    )
    has_internet = rng.binomial(1, 0.55 + 0.1 * income_level, size=n_students)
    has_tutoring = rng.binomial(1, 0.15 + 0.05 * income_level, size=n_students)

    df = pd.DataFrame(
        {
            "student_id": [f"S{100000+i}" for i in range(n_students)],
            "attendance_percent": attendance_percent,
            "study_hours_per_week": study_hours_per_week,
            "parent_education_level": parent_education_level,
            "income_level": income_level,
            "extracurricular_score": extracurricular_score,
            "resources_score": resources_score,
            "has_internet": has_internet,
            "has_tutoring": has_tutoring,
        }
    )

    # --- Ground truth: formula + noise so evaluation has something to find
    base = np.array([fallback_raw_score(row) for row in df[FEATURE_COLUMNS].to_numpy()])
    noisy = base + rng.normal(0, label_noise, size=n_students)
    df["actual_grade"] = [classify_grade(to_score(x)) for x in noisy]

    return df


def main() -> None:
    out_path = Path(DEFAULT_DATA_PATH)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    df = generate_student_dataset(n_students=3000, random_state=42)
    df.to_csv(out_path, index=False)

    # Print quick quality checks
    print(f"Wrote {len(df)} rows to {out_path}")
    print("Grade distribution:", df["actual_grade"].value_counts().sort_index().to_dict())
    print("Columns:", list(df.columns))


if __name__ == "__main__":
    main()
