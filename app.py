import logging

import streamlit as st

from src.config import AppConfig
from src.container import Services, build_services
from src.iqtest.domain.session import TestState
from src.iqtest.presentation.state_provider import StreamlitStateProvider
from src.iqtest.presentation.viewmodel import TestViewModel
from src.iqtest.presentation.views import (
    components,
    landing_view,
    leaderboard_view,
    question_view,
    result_view,
)
from src.shared.observability import configure_observability

# --- 1. Bootstrap Observability (once per session) ---
if "observability_configured" not in st.session_state:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s"
    )
    configure_observability("iqsite-web", metrics_port=AppConfig.METRICS_PORT)
    st.session_state.observability_configured = True


# --- 2. Dependency Injection (Composition Root) ---
@st.cache_resource
def get_services() -> Services:
    return build_services()


def render_test(vm: TestViewModel) -> None:
    state = vm.current_state

    if state == TestState.IDLE:
        landing_view.render_landing(vm)
    elif state == TestState.COLLECTING_INFO:
        landing_view.render_info_form(vm)
    elif state in (TestState.IN_PROGRESS, TestState.PAUSED):
        question_view.render_question(vm)
    elif state == TestState.COMPLETED:
        result_view.render_result(vm)


def main():
    st.set_page_config(page_title=AppConfig.APP_TITLE, page_icon="🧠", layout="centered")
    components.apply_styles()

    services = get_services()
    vm = TestViewModel(services.tests, StreamlitStateProvider())

    page = st.sidebar.radio("Menu", ["IQ Test", "Leaderboard"])

    # --- 3. Router (FSM) ---
    if page == "Leaderboard":
        leaderboard_view.render_leaderboard(services.leaderboard)
    else:
        render_test(vm)


if __name__ == "__main__":
    main()
