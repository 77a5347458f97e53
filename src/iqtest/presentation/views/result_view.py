import streamlit as st

from src.config import AppConfig, Badge
from src.iqtest.domain.scoring import format_time
from src.iqtest.presentation.viewmodel import TestViewModel


def render_result(vm: TestViewModel) -> None:
    result = vm.result
    if result is None:
        st.error("No result to show.")
        return

    badge = Badge.for_score(result.iq)
    if result.iq >= AppConfig.GENIUS_SCORE:
        st.balloons()

    st.title("🏁 Your result")
    st.markdown(f'<div class="iq-score">IQ {result.iq}</div>', unsafe_allow_html=True)
    st.caption(f"{badge.icon} {result.classification}")

    col1, col2, col3 = st.columns(3)
    col1.metric("Correct", f"{result.correct_answers} / {result.total_questions}")
    col2.metric("Accuracy", f"{result.accuracy}%")
    col3.metric("Percentile", f"{result.percentile:g}")
    st.metric("Time", format_time(result.time_spent))

    if result.category_scores:
        st.subheader("By category")
        for category, score in result.category_scores.items():
            st.progress(score / 100, text=f"{category.title()}: {score}%")

    st.markdown("---")
    if st.button("🔄 Take the test again", type="primary", use_container_width=True):
        vm.reset()
        st.rerun()
