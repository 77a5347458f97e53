import streamlit as st

from src.iqtest.application.leaderboard import LeaderboardService
from src.iqtest.domain.scoring import format_time
from src.iqtest.presentation.views.components import badge_label


def render_leaderboard(leaderboard: LeaderboardService) -> None:
    st.title("🏆 Leaderboard")

    stats = leaderboard.get_stats()
    col1, col2, col3 = st.columns(3)
    col1.metric("Participants", stats.total_participants)
    col2.metric("Highest", stats.highest_score)
    col3.metric("Average", stats.average_score)
    st.caption(f"{stats.genius_percentage}% scored genius level")

    page_number = st.number_input("Page", min_value=1, value=1, step=1)
    page = leaderboard.get_page(int(page_number))

    if not page.items:
        st.info("No results yet. Be the first!")
        return

    st.dataframe(
        [
            {
                "#": e.rank,
                "Name": e.name,
                "IQ": e.score,
                "Badge": badge_label(e.badge),
                "Country": e.country or "",
                "Time": format_time(e.duration_seconds),
            }
            for e in page.items
        ],
        hide_index=True,
        use_container_width=True,
    )
    st.caption(f"Page {page.page} of {page.total_pages}")
