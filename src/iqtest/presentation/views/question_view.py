import streamlit as st

from src.iqtest.domain.session import TestState
from src.iqtest.presentation.viewmodel import TestViewModel
from src.iqtest.presentation.views import components


def render_question(vm: TestViewModel) -> None:
    """Active question with timer, navigation and the pause popup."""
    if vm.check_timer():
        st.warning("⏰ Time is up! Your answers were submitted.")
        st.rerun()

    session = vm.session
    question = vm.current_question
    if session is None or question is None:
        st.error("No active test.")
        if st.button("Back to start"):
            vm.reset()
            st.rerun()
        return

    timer = vm.timer()
    col_timer, col_pause = st.columns([3, 1])
    with col_timer:
        if timer:
            components.render_timer(timer)
    with col_pause:
        if vm.current_state == TestState.IN_PROGRESS and st.button(
            "⏸️ Pause", use_container_width=True
        ):
            vm.pause()
            st.rerun()

    components.render_progress(
        session.current_index + 1,
        session.total_questions,
        session.total_questions - session.unanswered_count(),
    )

    if vm.current_state == TestState.PAUSED:
        _render_pause_popup(vm)
        return

    st.markdown(
        f'<div class="question-text">{question.question}</div>', unsafe_allow_html=True
    )

    current = session.answers[session.current_index]
    choice = st.radio(
        "Answer",
        options=list(range(len(question.options))),
        format_func=lambda i: question.options[i],
        index=current,
        key=f"answer_{question.id}",
        label_visibility="collapsed",
    )
    if choice is not None and choice != current:
        vm.select_answer(choice)

    col_prev, col_next = st.columns(2)
    with col_prev:
        if st.button("← Previous", disabled=session.current_index == 0, use_container_width=True):
            vm.go_previous()
            st.rerun()
    with col_next:
        if session.is_last_question():
            if st.button("✅ Submit", type="primary", use_container_width=True):
                vm.submit()
                st.rerun()
        elif st.button("Next →", type="primary", use_container_width=True):
            vm.go_next()
            st.rerun()


def _render_pause_popup(vm: TestViewModel) -> None:
    st.info("⏸️ Test paused. The timer is stopped.")
    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("▶️ Resume", type="primary", use_container_width=True):
            vm.resume()
            st.rerun()
    with col2:
        if st.button("✅ Submit now", use_container_width=True):
            vm.submit()
            st.rerun()
    with col3:
        if st.button("🚪 Quit", use_container_width=True):
            vm.abandon("pause_exit")
            st.rerun()
