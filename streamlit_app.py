from __future__ import annotations

import streamlit as st
from loguru import logger

from companion.avatars import avatar_url
from companion.errors import ConfigurationError
from companion.states import (
    GRADE_OPTIONS,
    LANGUAGE_LABELS,
    LANGUAGE_OPTIONS,
    ConnectionStatus,
    Role,
    SimulationSettings,
)
from companion.stream_runner import SessionRunner


def get_runner() -> SessionRunner:
    # One runner (and event loop) per browser session, reused across reruns
    if "runner" not in st.session_state:
        try:
            runner = SessionRunner.create()
        except ConfigurationError as e:
            logger.error(f"ui_config_error | {e}")
            st.error("OPENAI_API_KEY is not set. Add it to your environment or .env file and reload.")
            st.stop()
        st.session_state["runner"] = runner
    return st.session_state["runner"]


st.set_page_config(page_title="Eternal Dialogue", page_icon="📜", layout="wide")

runner = get_runner()
controller = runner.controller
store = controller.store

# Settings form (shown on first load and after Exit)
if store.awaiting_settings:
    st.title("Initialize Session")
    previous = store.settings or SimulationSettings()
    with st.form("settings_form"):
        person = st.text_input("Target Historical Figure", value=previous.target_person, placeholder="e.g. Qin Shi Huang")
        grade = st.selectbox("Student Grade Level", GRADE_OPTIONS, index=GRADE_OPTIONS.index(previous.student_grade))
        language = st.selectbox(
            "Language",
            LANGUAGE_OPTIONS,
            index=LANGUAGE_OPTIONS.index(previous.language),
            format_func=lambda code: LANGUAGE_LABELS.get(code, code),
        )
        submitted = st.form_submit_button("Enter History")
    if not submitted:
        st.stop()
    if not person.strip():
        st.error("Please enter a historical figure.")
        st.stop()
    with st.spinner(f"Summoning {person.strip()}..."):
        runner.start_session(SimulationSettings(person, grade, language))
    st.rerun()

# Sidebar: persona profile
profile = store.profile
sb = st.sidebar
if profile is None:
    sb.info("Loading persona...")
else:
    sb.image(avatar_url(profile), width="stretch")
    sb.header(profile.name)
    sb.caption(f"{profile.title} · {profile.era}")
    sb.markdown(f"> {profile.bio_quote}")
    sb.subheader("Key Achievements")
    for item in profile.key_achievements:
        sb.markdown(f"- {item}")
if sb.button("Exit", help="End Session & Select New Character"):
    controller.reset()
    st.rerun()

# Chat
persona_name = profile.name if profile else (store.settings.target_person if store.settings else "")
persona_avatar = avatar_url(profile) or "📜"
st.title("Eternal Dialogue")
st.caption(f"In conversation with {persona_name}")

for msg in store.messages:
    role = "user" if msg.role == Role.USER else "assistant"
    with st.chat_message(role, avatar=None if role == "user" else persona_avatar):
        st.markdown(msg.content)

if store.status == ConnectionStatus.ERROR:
    st.warning("The last reply could not be generated. Send your question again to retry.")

text = st.chat_input(f"Ask {persona_name} a question...")
if text:
    with st.spinner(f"{persona_name} is thinking..."):
        for event in runner.send_message_stream(text):
            logger.debug(f"ui_event | type={event['type']}")
    st.rerun()

# Teacher insights for the latest turn
analysis = store.latest_analysis
with st.expander("Teacher Insights", expanded=False):
    if analysis is None:
        st.info("Start a conversation to see the orchestrator analysis and teacher insights.")
    else:
        c1, c2 = st.columns(2)
        c1.metric("Detected Emotion", analysis.emotion_tag)
        c2.metric("Internal Guess", analysis.emotion_guess)
        st.markdown(f"**Teacher Note:** {analysis.teacher_note}")
        st.markdown(f"**Student Focus:** {analysis.student_focus}")
        st.caption("Open the Teacher Insights page for the full analysis.")
