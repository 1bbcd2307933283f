"""
performance_engine/data_dictionary.py

Column names, descriptions and input ranges shared by the scoring code and the
Streamlit UI.

FEATURE_COLUMNS is a contract: the serialized forest indexes features by
position, so this order must never change.
"""

FEATURE_COLUMNS = [
    "attendance_percent",
    "study_hours_per_week",
    "parent_education_level",
    "income_level",
    "extracurricular_score",
    "resources_score",
    "has_internet",
    "has_tutoring",
]

BOOLEAN_COLUMNS = ["has_internet", "has_tutoring"]

# (min, max) as offered by the input widgets. Scoring does not enforce these.
INPUT_RANGES = {
    "attendance_percent": (0, 100),
    "study_hours_per_week": (0, 30),
    "parent_education_level": (0, 4),
    "income_level": (0, 3),
    "extracurricular_score": (0, 5),
    "resources_score": (0, 5),
}

PARENT_EDUCATION_LEVELS = {
    0: "No formal",
    1: "Secondary",
    2: "Diploma",
    3: "Graduate",
    4: "Postgraduate",
}

INCOME_LEVELS = {
    0: "Low",
    1: "Lower-Middle",
    2: "Upper-Middle",
    3: "High",
}

DATA_DICTIONARY = {
    "attendance_percent": "Share of classes attended, in percent (0–100).",
    "study_hours_per_week": "Self-reported study hours per week (0–30).",
    "parent_education_level": "Highest parent education, 0 = no formal … 4 = postgraduate.",
    "income_level": "Household income band, 0 = low … 3 = high.",
    "extracurricular_score": "Extracurricular involvement (0–5).",
    "resources_score": "Access to learning resources at home/school (0–5).",
    "has_internet": "Internet access at home (1 = yes).",
    "has_tutoring": "Receives tutoring support (1 = yes).",
    "actual_grade": "Observed letter grade (A–F) used as ground truth for evaluation.",
    "score": "Predicted performance score (0–100).",
    "grade": "Letter grade derived from score (A ≥ 90, B ≥ 80, C ≥ 70, D ≥ 60, else F).",
    "risk": "Risk of underperformance derived from score (Low ≥ 80, Medium ≥ 60, else High).",
}
