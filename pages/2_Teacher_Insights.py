from __future__ import annotations

import streamlit as st

from companion.stream_runner import SessionRunner


st.set_page_config(page_title="Teacher Insights", page_icon="🧠", layout="wide")
st.title("Orchestrator Insights")
st.caption("Live analysis of the latest turn between the student and the historical figure.")

runner: SessionRunner | None = st.session_state.get("runner")
analysis = runner.store.latest_analysis if runner else None

if analysis is None:
    st.info("Waiting for data. Start a conversation to see the orchestrator analysis and teacher insights.")
    st.stop()

c1, c2 = st.columns(2)
with c1:
    st.subheader("Detected Emotion")
    st.write(analysis.emotion_tag.capitalize())
with c2:
    st.subheader("Internal Guess")
    st.write(analysis.emotion_guess.capitalize())

st.subheader("Teacher Note")
st.info(analysis.teacher_note)

st.subheader("Student Focus")
st.write(analysis.student_focus)

st.subheader("Knowledge Covered")
if analysis.knowledge_covered:
    for fact in analysis.knowledge_covered:
        st.markdown(f"- {fact}")
else:
    st.caption("No specific facts recorded for this turn.")

st.subheader("Possible Confusion")
st.warning(analysis.possible_confusion or "None detected.")

st.subheader("Suggested Follow-up")
st.write(analysis.follow_up_question)

st.caption(f"Persona: {analysis.persona_name} · Style: {analysis.persona_style}")
