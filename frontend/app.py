"""Weather App - Streamlit Frontend.

Run with: streamlit run frontend/app.py
"""

import asyncio
import logging

import streamlit as st
from dotenv import load_dotenv

from observability import install_log_buffer
from src.apps.weather_app.app import WeatherApp, build_app
from src.config import MESSAGES, THEMES, Settings


load_dotenv()

DARK_THEME_CSS = """
<style>
.stApp { background-color: #1e2430; color: #e8ecf3; }
.stApp p, .stApp span, .stApp label, .stApp h1, .stApp h2, .stApp h3 { color: #e8ecf3; }
</style>
"""


def run_action(app: WeatherApp, awaitable) -> None:
    """Run one UI action; unexpected failures end up in the error banner."""
    try:
        asyncio.run(awaitable)
    except Exception as e:
        app.handle_unexpected_error(e)


def get_app() -> WeatherApp:
    """Build the app once per browser session."""
    if "weather_app" not in st.session_state:
        settings = Settings.from_env()
        logging.basicConfig(level=settings.log_level)
        st.session_state.log_buffer = install_log_buffer()
        app = build_app(settings)
        st.session_state.weather_app = app
        run_action(app, app.init())
    return st.session_state.weather_app


if "confirm_clear" not in st.session_state:
    st.session_state.confirm_clear = False

weather_app = get_app()
ui = weather_app.ui_controller

st.set_page_config(
    page_title=ui.title,
    page_icon=ui.favicon,
    layout="centered",
)

if ui.theme == "dark":
    st.markdown(DARK_THEME_CSS, unsafe_allow_html=True)


# Sidebar: recent searches, theme, logs
with st.sidebar:
    st.title("🌤️ Weather App")

    theme = st.radio(
        "Theme",
        THEMES,
        index=THEMES.index(ui.theme),
        horizontal=True,
    )
    if theme != ui.theme:
        weather_app.set_theme(theme)
        st.rerun()

    st.divider()

    if not ui.elements["recent_searches"].hidden:
        st.subheader("Recent searches")
        for item in ui.recent_items:
            if st.button(
                item.city,
                key=f"recent_{item.city}",
                help=item.label,
                use_container_width=True,
                disabled=ui.is_loading_active(),
            ):
                run_action(weather_app, item.click())
                st.rerun()

        if st.session_state.confirm_clear:
            st.warning(MESSAGES["CONFIRM_CLEAR_HISTORY"])
            col_yes, col_no = st.columns(2)
            with col_yes:
                if st.button("Yes", use_container_width=True):
                    weather_app.clear_recent_searches(confirmed=True)
                    st.session_state.confirm_clear = False
                    st.rerun()
            with col_no:
                if st.button("No", use_container_width=True):
                    st.session_state.confirm_clear = False
                    st.rerun()
        elif st.button("🗑️ Clear history", use_container_width=True):
            st.session_state.confirm_clear = True
            st.rerun()

    st.divider()

    log_buffer = st.session_state.get("log_buffer")
    if log_buffer is not None:
        with st.expander("📋 Logs"):
            stats = log_buffer.get_stats()
            st.caption(f"{stats['total']} records")
            st.json(stats["by_level"])
            for entry in reversed(log_buffer.get_recent_logs(minutes=10)):
                st.text(f"[{entry.timestamp:%H:%M:%S}] [{entry.level}] {entry.message}")
            st.download_button(
                "Export logs",
                data=log_buffer.export_logs(),
                file_name="weather-app-logs.json",
                mime="application/json",
            )


# Main: search form and weather card
st.title(ui.title)

with st.form("search_form", clear_on_submit=True):
    col_input, col_submit = st.columns([4, 1])
    with col_input:
        city = st.text_input(
            "City",
            placeholder="e.g. Oradea",
            label_visibility="collapsed",
            disabled=ui.elements["search_input"].disabled,
        )
    with col_submit:
        submitted = st.form_submit_button("Search", use_container_width=True)

if submitted:
    ui.on_input(city)
    run_action(weather_app, ui.submit_search())
    st.rerun()

col_locate, col_refresh = st.columns(2)
with col_locate:
    if st.button(
        "📍 Use my location",
        use_container_width=True,
        disabled=ui.elements["location_button"].disabled,
    ):
        run_action(weather_app, ui.request_location())
        st.rerun()
with col_refresh:
    if st.button(
        "🔄 Refresh",
        use_container_width=True,
        disabled=weather_app.current_weather_data is None,
    ):
        run_action(weather_app, weather_app.refresh_weather())
        st.rerun()

error = ui.active_error()
if error:
    col_error, col_dismiss = st.columns([5, 1])
    col_error.error(error)
    if col_dismiss.button("✕", key="dismiss_error", help="Dismiss"):
        ui.handle_key("Escape")
        st.rerun()

for message in ui.active_toasts():
    st.toast(message, icon="✅")

if not ui.elements["loading"].hidden:
    st.info(ui.elements["loading"].text)

if not ui.elements["weather_card"].hidden:
    elements = ui.elements
    with st.container(border=True):
        st.header(f"{elements['weather_icon'].text} {elements['location'].text}")
        st.metric(elements["description"].text, elements["temperature"].text)
        st.caption(elements["feels_like"].text)

        col1, col2, col3 = st.columns(3)
        col1.metric("Humidity", elements["humidity"].text)
        col2.metric("Pressure", elements["pressure"].text)
        col3.metric("Wind", elements["wind_speed"].text)

        col4, col5, col6 = st.columns(3)
        col4.metric("Visibility", elements["visibility"].text)
        col5.metric("Sunrise", elements["sunrise"].text)
        col6.metric("Sunset", elements["sunset"].text)

    export = weather_app.export_weather_data()
    if export:
        with st.expander("📄 Export"):
            st.json(export)