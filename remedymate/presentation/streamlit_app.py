import logging
import os

import streamlit as st

from remedymate.domain.errors import (
    ConversationNotActiveError,
    GatewayError,
    InvalidInputError,
    InvalidSymptomError,
    RemedyMateError,
)
from remedymate.domain.models import HealthReport, Language, Question, Remedy, TriageLevel
from remedymate.domain.rules import COMPLETION_MESSAGES
from remedymate.infrastructure.config import Settings
from remedymate.infrastructure.container import Services, build_services


logger = logging.getLogger(__name__)


DISCLAIMER = (
    "⚕️ **DISCLAIMER:** This is NOT medical advice and NOT a diagnosis. "
    "If you experience emergency symptoms, seek immediate care (call your local emergency number)."
)

GREETINGS = {
    Language.EN: "Hi! I'm RemedyMate. Please describe your main symptom or concern.",
    Language.AM: "ሰላም! እኔ RemedyMate ነኝ። እባክዎ ዋና ምልክትዎን ወይም ጭንቀትዎን ይግለጹ።",
}

LEVEL_HEADINGS = {
    TriageLevel.RED: "## 🚨 Seek Emergency Care",
    TriageLevel.YELLOW: "## ⏰ Monitor Closely",
    TriageLevel.GREEN: "## ✅ Self-Care Likely Appropriate",
}

MODE_CONVERSATION = "Guided conversation"
MODE_QUICK = "Quick triage"


@st.cache_resource
def _get_services() -> Services:
    return build_services(Settings())


def _init_session_state(language: Language):
    if "conversation_id" not in st.session_state:
        st.session_state.conversation_id = None
    if "chat_messages" not in st.session_state:
        st.session_state.chat_messages = [{"role": "assistant", "content": GREETINGS[language]}]


def _reset_session(language: Language):
    st.session_state.conversation_id = None
    st.session_state.chat_messages = [{"role": "assistant", "content": GREETINGS[language]}]


def _require_api_key(settings: Settings) -> bool:
    key = settings.gemini_api_key if settings.llm_provider == "gemini" else settings.mistral_api_key
    if not key:
        name = "GEMINI_API_KEY" if settings.llm_provider == "gemini" else "MISTRAL_API_KEY"
        st.error(
            f"❌ **{name} missing**\n\n"
            f"Add `{name}` to `.streamlit/secrets.toml` or as an environment variable."
        )
        return False
    return True


def _render_sidebar(settings: Settings):
    st.sidebar.title("⚙️ Settings")

    language = Language(st.sidebar.selectbox(
        "Language",
        [lang.value for lang in Language],
        format_func=lambda code: {"en": "English", "am": "አማርኛ (Amharic)"}[code],
    ))
    mode = st.sidebar.radio("Mode", [MODE_CONVERSATION, MODE_QUICK])

    st.sidebar.markdown("### Model")
    model = settings.gemini_model if settings.llm_provider == "gemini" else settings.mistral_model
    st.sidebar.caption(f"**Provider:** {settings.llm_provider} · **Model:** {model}")

    st.sidebar.divider()
    if st.sidebar.button("🔄 New Conversation", use_container_width=True):
        _reset_session(language)
        st.rerun()

    return language, mode


def _render_topic_library(services: Services, language: Language):
    with st.sidebar.expander("📚 Self-care topics"):
        for card in services.composer.offline_cards(language):
            st.markdown(f"**{card.topic_key.replace('_', ' ').title()}**")
            st.markdown("\n".join(f"- {item}" for item in card.self_care))


def format_question(question: Question, step: int, total: int, notice: str = "") -> str:
    lines = []
    if notice:
        lines.append(f"🚨 **{notice}**\n")
    lines.append(f"**Question {step} of {total}:** {question.text}")
    if not question.required:
        lines.append("_(optional)_")
    return "\n".join(lines)


def format_remedy(remedy: Remedy) -> str:
    triage = remedy.triage
    lines = [LEVEL_HEADINGS[triage.level], triage.message, ""]

    if remedy.self_care:
        lines.append("### 🏠 Self-Care")
        lines.extend(f"- {item}" for item in remedy.self_care)
        lines.append("")
    if remedy.otc_categories:
        lines.append("### 💊 Over-the-Counter Options")
        for otc in remedy.otc_categories:
            note = f": {otc.safety_note}" if otc.safety_note else ""
            lines.append(f"- **{otc.category_name}**{note}")
        lines.append("")
    if remedy.seek_care_if:
        lines.append("### 🏥 Seek Care If")
        lines.extend(f"- {item}" for item in remedy.seek_care_if)
        lines.append("")
    if remedy.disclaimer:
        lines.append(f"_{remedy.disclaimer}_")

    return "\n".join(lines).strip()


def format_report(report: HealthReport) -> str:
    """Format a health report as a chat message."""
    lines = ["# 📋 Health Report\n"]

    if report.urgency_level:
        lines.append(f"**Urgency:** {report.urgency_level}\n")

    fields = [
        ("Symptom", report.symptom),
        ("Duration", report.duration),
        ("Location", report.location),
        ("Severity", report.severity),
        ("Medical history", report.medical_history),
        ("Triggers", report.triggers),
    ]
    for label, value in fields:
        if value:
            lines.append(f"- **{label}:** {value}")
    if report.associated_symptoms:
        lines.append(f"- **Associated symptoms:** {', '.join(report.associated_symptoms)}")
    lines.append("")

    if report.possible_conditions:
        lines.append("## 🔍 Possible Explanations (NOT a diagnosis)")
        lines.extend(f"- {condition}" for condition in report.possible_conditions)
        lines.append("")

    if report.recommendations:
        lines.append("## 📝 Recommended Next Steps")
        for i, step in enumerate(report.recommendations, 1):
            lines.append(f"{i}. {step}")
        lines.append("")

    if report.remedy is not None:
        lines.append(format_remedy(report.remedy))
        lines.append("")

    lines.append("---")
    lines.append("⚠️ **Reminder:** This is NOT medical advice. Always consult a licensed healthcare professional.")
    return "\n".join(lines)


def format_error(error: RemedyMateError) -> str:
    if isinstance(error, InvalidSymptomError):
        return f"🤔 {error.feedback}"
    if isinstance(error, InvalidInputError):
        return f"⚠️ {error.message}"
    if isinstance(error, GatewayError):
        return "⏳ The assistant is not responding right now. Please try again in a moment."
    if isinstance(error, ConversationNotActiveError):
        return "This conversation has ended. Start a new conversation from the sidebar."
    return f"❌ **Something went wrong:** {error.message}"


def handle_conversation_input(services: Services, session, user_input: str, language: Language) -> str:
    """Advance the guided conversation held in the session; returns the assistant's reply."""
    engine = services.engine
    if session.conversation_id is None:
        started = engine.start_conversation(user_input, language)
        session.conversation_id = started.conversation_id
        return format_question(started.question, started.current_step, started.total_steps, started.notice)

    result = engine.submit_answer(session.conversation_id, user_input)
    if result.is_complete:
        report = engine.get_report(session.conversation_id)
        language = engine.get_conversation(session.conversation_id).language
        return COMPLETION_MESSAGES[language] + "\n\n" + format_report(report.report)

    if result.feedback:
        return f"🤔 {result.feedback}\n\n" + format_question(result.question, result.current_step,
                                                           result.total_steps)
    return format_question(result.question, result.current_step, result.total_steps)


def handle_quick_input(services: Services, user_input: str, language: Language) -> str:
    remedy = services.remedy.get_remedy(user_input, language)
    return format_remedy(remedy)


def main():
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))

    st.set_page_config(
        page_title="RemedyMate",
        page_icon="⚕️",
        layout="centered",
        initial_sidebar_state="expanded",
    )

    settings = Settings()
    if not _require_api_key(settings):
        st.stop()

    services = _get_services()
    language, mode = _render_sidebar(settings)
    _render_topic_library(services, language)
    _init_session_state(language)

    st.markdown("# 🏥 RemedyMate")
    st.info(DISCLAIMER)

    for msg in st.session_state.chat_messages:
        with st.chat_message(msg["role"]):
            st.markdown(msg["content"])

    user_input = st.chat_input("Type your response...")
    if not user_input:
        return

    st.session_state.chat_messages.append({"role": "user", "content": user_input})
    with st.spinner("⏳ Thinking..."):
        try:
            if mode == MODE_QUICK:
                reply = handle_quick_input(services, user_input, language)
            else:
                reply = handle_conversation_input(services, st.session_state, user_input, language)
        except RemedyMateError as e:
            logger.warning("Request failed: %s (%s)", e.message, e.code)
            reply = format_error(e)

    st.session_state.chat_messages.append({"role": "assistant", "content": reply})
    st.rerun()


if __name__ == "__main__":
    main()
