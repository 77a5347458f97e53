import streamlit as st

from src.config import Badge
from src.iqtest.presentation.viewmodel import TimerView


def apply_styles() -> None:
    st.markdown(
        """
        <style>
            .block-container { padding-top: 2rem !important; max-width: 760px; }
            .timer { padding: 8px 12px; border-radius: 8px; background: #f0f2f6;
                     text-align: center; font-weight: 700; font-size: 1.1rem; }
            .timer.warning { background: #fee2e2; color: #b91c1c; }
            .question-text { font-size: 1.15rem; font-weight: 600; margin: 10px 0 20px;
                             line-height: 1.6; color: #111827; }
            .iq-score { font-size: 3.5rem; font-weight: 800; text-align: center; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_timer(timer: TimerView) -> None:
    css = "timer warning" if timer.warning else "timer"
    st.markdown(f'<div class="{css}">⏱️ {timer.label}</div>', unsafe_allow_html=True)


def render_progress(current: int, total: int, answered: int) -> None:
    col1, col2 = st.columns(2)
    col1.caption(f"Question {current} / {total}")
    col2.caption(f"Answered {answered} / {total}")
    st.progress(current / total if total else 0.0)


def badge_label(key: str) -> str:
    try:
        badge = Badge[key.upper()]
    except KeyError:
        return key
    return f"{badge.icon} {badge.label}"
