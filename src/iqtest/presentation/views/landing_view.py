import streamlit as st
from pydantic import ValidationError

from src.config import AppConfig
from src.iqtest.domain.models import UserInfo
from src.iqtest.presentation.viewmodel import TestViewModel


def render_landing(vm: TestViewModel) -> None:
    st.title(f"🧠 {AppConfig.APP_TITLE}")
    minutes = vm.service.time_limit // 60
    st.markdown(
        f"{len(vm.service.load_questions())} questions covering logic, math, "
        f"verbal, spatial and pattern reasoning. You have **{minutes} minutes**."
    )
    st.info("The timer can be paused once the test has started.", icon="ℹ️")

    if st.button("🚀 Start the test", type="primary", use_container_width=True):
        vm.begin()
        st.rerun()


def render_info_form(vm: TestViewModel) -> None:
    st.subheader("📝 Before you start")

    with st.form("user_info"):
        name = st.text_input("Name *", max_chars=100)
        email = st.text_input("Email (to appear on the leaderboard)")
        age = st.number_input("Age", min_value=0, max_value=120, value=None, step=1)
        country = st.text_input("Country")
        gender = st.selectbox("Gender", ["", "male", "female", "other"])
        is_mobile = st.checkbox("I'm on a phone")
        submitted = st.form_submit_button("Begin", type="primary")

    if submitted:
        try:
            info = UserInfo(
                name=name.strip(),
                email=email.strip() or None,
                age=int(age) if age is not None else None,
                country=country.strip() or None,
                gender=gender or None,
            )
        except ValidationError:
            st.error("Please enter your name.")
            return
        vm.start_test(info, is_mobile=is_mobile)
        st.rerun()

    if st.button("← Back"):
        vm.abandon("info_form_exit")
        st.rerun()
