"""
app/streamlit_app.py

Purpose
-------
A Streamlit dashboard that:
  - loads the pretrained forest (falls back to a formula if it is unavailable)
  - predicts a score, grade and risk tier from eight student inputs
  - records predicted-vs-actual grades and shows a confusion matrix + metrics
  - scores an uploaded CSV in batch
  - explains the current prediction with SHAP

All scoring logic lives in performance_engine/; this file is UI only.
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import streamlit as st

from performance_engine.config import ARTIFACT_DIR
from performance_engine.data_dictionary import (
    DATA_DICTIONARY,
    FEATURE_COLUMNS,
    INCOME_LEVELS,
    INPUT_RANGES,
    PARENT_EDUCATION_LEVELS,
)
from performance_engine.explain import default_background, explain_prediction
from performance_engine.features import RawInputs, build_feature_vector
from performance_engine.inference import PerformanceEngine, load_bundle, score
from performance_engine.scoring import GRADE_LABELS


# ---------------------------------------------------------------------
# Streamlit page configuration
# ---------------------------------------------------------------------
st.set_page_config(
    page_title="Student Performance Predictor",
    layout="wide",
)
st.title("🎓 Predicting Student Performance")

ART = Path(ARTIFACT_DIR)


# ---------------------------------------------------------------------
# Caching helpers
# ---------------------------------------------------------------------
# The forest is immutable once loaded, so one copy is shared by all sessions.
# The evaluation log is per user and lives in session_state instead.

@st.cache_resource
def get_bundle():
    """Load the forest once per process (unless code changes)."""
    return load_bundle(ART)

@st.cache_data
def get_background() -> pd.DataFrame:
    return default_background(n_rows=30)


def get_engine() -> PerformanceEngine:
    if "engine" not in st.session_state:
        st.session_state["engine"] = PerformanceEngine(get_bundle())
    return st.session_state["engine"]


engine = get_engine()

if engine.bundle.uses_fallback:
    st.warning("Forest model unavailable; using the built-in scoring formula.")
    if engine.model_error:
        st.code(engine.model_error)
else:
    st.success(f"✅ Forest model loaded ({len(engine.bundle.forest)} trees).")


# ---------------------------------------------------------------------
# Sidebar inputs
# ---------------------------------------------------------------------
def set_inputs(raw: RawInputs) -> None:
    for name, value in zip(FEATURE_COLUMNS, build_feature_vector(raw)):
        st.session_state[name] = bool(value) if name.startswith("has_") else int(value)


if "attendance_percent" not in st.session_state:
    set_inputs(RawInputs.defaults())

st.sidebar.header("Enter Inputs")

st.sidebar.slider("Attendance (%)", *INPUT_RANGES["attendance_percent"], key="attendance_percent")
st.sidebar.number_input("Study hours/week", *INPUT_RANGES["study_hours_per_week"], step=1, key="study_hours_per_week")
st.sidebar.selectbox(
    "Parent education level",
    options=list(PARENT_EDUCATION_LEVELS),
    format_func=PARENT_EDUCATION_LEVELS.get,
    key="parent_education_level",
)
st.sidebar.selectbox(
    "Household income",
    options=list(INCOME_LEVELS),
    format_func=INCOME_LEVELS.get,
    key="income_level",
)
st.sidebar.number_input("Extracurricular (0-5)", *INPUT_RANGES["extracurricular_score"], step=1, key="extracurricular_score")
st.sidebar.number_input("Resources (0-5)", *INPUT_RANGES["resources_score"], step=1, key="resources_score")
st.sidebar.checkbox("Internet access", key="has_internet")
st.sidebar.checkbox("Tutoring support", key="has_tutoring")

st.sidebar.button("Reset", on_click=set_inputs, args=(RawInputs.zeros(),))

raw = RawInputs.from_mapping({c: st.session_state[c] for c in FEATURE_COLUMNS})
features = build_feature_vector(raw)


# ---------------------------------------------------------------------
# Prediction
# ---------------------------------------------------------------------
result = engine.predict(raw)

st.subheader("Prediction")
col1, col2, col3 = st.columns(3)
col1.metric("Score", result.score)
col2.metric("Grade", result.grade)
col3.metric("Risk", result.risk)

st.write(
    f"Based on your inputs, performance is predicted to be **{result.score}%** "
    f"(grade **{result.grade}**) with **{result.risk}** risk of underperformance."
)
st.markdown(
    "- Increase weekly study time to improve the score.\n"
    "- Maintain high attendance; it has the largest impact.\n"
    "- Leverage school resources and consider tutoring support."
)
st.caption(f"Scored by: {result.source}")


# ---------------------------------------------------------------------
# Evaluation: compare predicted grade with the actual grade
# ---------------------------------------------------------------------
st.subheader("Evaluate predictions")

ecol1, ecol2, ecol3 = st.columns([2, 1, 1])
actual = ecol1.selectbox("Actual grade for these inputs", options=list(GRADE_LABELS))
if ecol2.button("Record comparison"):
    engine.record_evaluation(actual, result.grade)
if ecol3.button("Clear records"):
    engine.clear_evaluations()

matrix = engine.get_confusion_matrix()
metrics = engine.get_metrics()

mcol1, mcol2 = st.columns([1, 1])

with mcol1:
    st.caption(f"Confusion matrix ({len(engine.log)} records; rows = actual, columns = predicted)")
    fig, ax = plt.subplots()
    ax.imshow(matrix, cmap="Blues")
    ax.set_xticks(np.arange(len(GRADE_LABELS)), labels=GRADE_LABELS)
    ax.set_yticks(np.arange(len(GRADE_LABELS)), labels=GRADE_LABELS)
    ax.set_xlabel("predicted")
    ax.set_ylabel("actual")
    for i in range(len(GRADE_LABELS)):
        for j in range(len(GRADE_LABELS)):
            ax.text(j, i, str(matrix[i, j]), ha="center", va="center")
    st.pyplot(fig)

with mcol2:
    st.metric("Accuracy", f"{metrics.accuracy:.2%}")
    st.write(
        {
            "macro precision": round(metrics.macro_precision, 3),
            "macro recall": round(metrics.macro_recall, 3),
            "macro F1": round(metrics.macro_f1, 3),
        }
    )
    st.dataframe(metrics.to_frame().round(3), use_container_width=True)


# ---------------------------------------------------------------------
# Batch scoring
# ---------------------------------------------------------------------
st.subheader("Upload CSV for scoring")
st.caption(f"Required columns: {FEATURE_COLUMNS}")

with st.expander("Column descriptions"):
    st.table(pd.Series(DATA_DICTIONARY, name="description"))

file = st.file_uploader("Upload a CSV", type="csv")

if file:
    df = pd.read_csv(file)
    try:
        scored = score(df, engine.bundle)
    except ValueError as e:
        st.error("Input data failed validation.")
        st.code(str(e))
    else:
        out = df.drop(columns=scored.columns, errors="ignore").join(scored)
        st.dataframe(out.sort_values("score").head(50), use_container_width=True)
        st.download_button(
            "Download scored CSV",
            data=out.to_csv(index=False).encode("utf-8"),
            file_name="scored.csv",
            mime="text/csv",
        )
        st.write(out["risk"].value_counts())


# ---------------------------------------------------------------------
# Explainability (SHAP)
# ---------------------------------------------------------------------
st.subheader("Explainability (SHAP)")

if st.checkbox("Explain this prediction"):
    explanation = explain_prediction(features, engine.bundle.forest, get_background())
    st.caption(
        f"Baseline {explanation.base_value:.1f} → raw score {explanation.prediction:.1f} "
        "(before clamping to 0–100)"
    )
    contrib = explanation.to_frame()
    fig2, ax2 = plt.subplots()
    ax2.barh(contrib.index[::-1], contrib["contribution"][::-1])
    ax2.set_xlabel("contribution to score")
    st.pyplot(fig2)
