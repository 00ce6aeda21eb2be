"""Main Streamlit application for CareerCompass AI."""
import streamlit as st
import pandas as pd
from typing import Optional, List

from config import (
    APP_TITLE,
    COACH_NAME,
    STORAGE_PATH,
    SKILL_LEVELS,
    ANALYSIS_ERROR_MESSAGE,
    RESUME_ERROR_MESSAGE,
)
from coach.schemas import AnalysisResult, Skill, User, ChatMessage
from coach.analysis import analyze_skill_gap, AnalysisError
from coach.chat import open_chat_session, greeting_message, stream_reply, new_message_id, ChatBusyError
from coach.resume_insights import generate_resume_insights, ResumeInsightsError
from services.llm_client import create_llm_client, LLMClient, LLMError
from services.storage import SqliteStore
from services.auth_service import AuthService, AuthError
from services.gamification_service import score_to_badges, BadgeRepository
from utils.text_cleaning import parse_skill_list
from utils.display_utils import clamp_percentage, badge_label, importance_label, RESOURCE_ICONS
from utils.logging_utils import get_logger

logger = get_logger(__name__)

# Page configuration
st.set_page_config(
    page_title=APP_TITLE,
    page_icon="🧭",
    layout="wide",
    initial_sidebar_state="expanded",
)

# App states
IDLE = "IDLE"
ANALYZING = "ANALYZING"
RESULTS = "RESULTS"
ERROR = "ERROR"

# Initialize session state
_DEFAULT_STATE = {
    "user": None,
    "app_state": IDLE,
    "analysis_result": None,
    "target_role": "",
    "current_skills": [],
    "analysis_context": "",
    "error_msg": "",
    "draft_skills": [],
    "llm_client": None,
    "chat_session": None,
    "chat_messages": [],
    "chat_busy": False,
    "pending_chat_prompt": "",
    "resume_insights": None,
    "resume_loading": False,
    "resume_error": "",
}
for _key, _value in _DEFAULT_STATE.items():
    if _key not in st.session_state:
        st.session_state[_key] = list(_value) if isinstance(_value, list) else _value


@st.cache_resource
def get_store() -> SqliteStore:
    return SqliteStore(STORAGE_PATH)


def get_auth_service() -> AuthService:
    return AuthService(get_store())


def get_badge_repository() -> BadgeRepository:
    return BadgeRepository(get_store())


def initialize_llm_client() -> Optional[LLMClient]:
    """
    Initialize and cache the LLM client using config defaults.

    Returns:
        Client, or None if it could not be created
    """
    if st.session_state["llm_client"] is None:
        try:
            client = create_llm_client()
            st.session_state["llm_client"] = client
            logger.info(f"✅ LLM client initialized with model: {client.model_name}")
        except (ValueError, LLMError) as e:
            logger.error(f"❌ Failed to initialize LLM: {str(e)}")
            return None
    return st.session_state["llm_client"]


def reset_analysis() -> None:
    st.session_state["app_state"] = IDLE
    st.session_state["analysis_result"] = None
    st.session_state["current_skills"] = []
    st.session_state["error_msg"] = ""
    st.session_state["chat_session"] = None
    st.session_state["chat_messages"] = []
    st.session_state["chat_busy"] = False
    st.session_state["pending_chat_prompt"] = ""
    st.session_state["resume_insights"] = None
    st.session_state["resume_loading"] = False
    st.session_state["resume_error"] = ""


def sign_out() -> None:
    get_auth_service().logout()
    st.session_state["user"] = None
    st.session_state["draft_skills"] = []
    reset_analysis()


# --- Auth screen ---

def render_auth_screen() -> None:
    st.title(f"🧭 {APP_TITLE}")
    st.caption("Sign in to track your career progress and badges.")

    login_tab, register_tab = st.tabs(["Sign In", "Create Account"])

    with login_tab:
        with st.form("login_form"):
            email = st.text_input("Email", placeholder="you@example.com")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign In", use_container_width=True)
        if submitted:
            try:
                st.session_state["user"] = get_auth_service().login(email, password)
                st.rerun()
            except AuthError as e:
                st.error(str(e))

    with register_tab:
        with st.form("register_form"):
            name = st.text_input("Full Name", placeholder="John Doe")
            email = st.text_input("Email", placeholder="you@example.com", key="register_email")
            password = st.text_input("Password", type="password", key="register_password")
            submitted = st.form_submit_button("Create Account", use_container_width=True)
        if submitted:
            try:
                st.session_state["user"] = get_auth_service().register(name, email, password)
                st.rerun()
            except AuthError as e:
                st.error(str(e))

    st.caption("Demo accounts are stored locally and are not a secure login.")


# --- Sidebar / profile ---

def render_profile_sidebar(user: User) -> None:
    with st.sidebar:
        st.subheader(f"👤 {user.name}")
        st.caption(f"✉️ {user.email}")

        st.markdown("**Your Badges**")
        badges = get_badge_repository().get_badges(user.id)
        if badges:
            for badge in badges:
                st.markdown(badge_label(badge))
                st.caption(f"{badge.description} · earned {badge.date_earned[:10]}")
        else:
            st.info("Complete an analysis to earn your first badge.")

        st.markdown("---")
        st.button("Sign Out", on_click=sign_out, use_container_width=True)


# --- Input collector ---

def _add_skill() -> None:
    # Comma-separated entries add several skills at once
    st.session_state["draft_skills"].extend(parse_skill_list(st.session_state.get("skill_entry", "")))
    st.session_state["skill_entry"] = ""


def _remove_skill(index: int) -> None:
    st.session_state["draft_skills"].pop(index)


def _submit_analysis() -> None:
    role = st.session_state.get("role_input", "").strip()
    skills = list(st.session_state["draft_skills"])
    if not role or not skills:
        st.session_state["input_error"] = "Please enter a target role and at least one skill."
        return
    st.session_state["input_error"] = ""
    st.session_state["target_role"] = role
    st.session_state["current_skills"] = skills
    st.session_state["analysis_context"] = st.session_state.get("context_input", "")
    st.session_state["app_state"] = ANALYZING


def render_analysis_input(is_analyzing: bool) -> None:
    st.subheader("🎯 Analyze Your Skill Gap")

    st.text_input(
        "Target Role",
        placeholder="e.g. Senior Frontend Engineer, Data Scientist",
        key="role_input",
        disabled=is_analyzing,
    )

    col_entry, col_add = st.columns([4, 1])
    with col_entry:
        st.text_input(
            "Current Skills",
            placeholder="Type skills and press Add (e.g. 'React, Python (Expert)')",
            help=f"Separate skills with commas. Add a level in brackets: {', '.join(SKILL_LEVELS)}. Defaults to Intermediate.",
            key="skill_entry",
            disabled=is_analyzing,
        )
    with col_add:
        st.markdown("<br>", unsafe_allow_html=True)  # Align button with input
        st.button("➕ Add", on_click=_add_skill, use_container_width=True, disabled=is_analyzing)

    skills: List[Skill] = st.session_state["draft_skills"]
    if skills:
        for idx, skill in enumerate(skills):
            col_skill, col_remove = st.columns([5, 1])
            col_skill.markdown(f"- **{skill.name}** ({skill.level})")
            col_remove.button("✖", key=f"remove_skill_{idx}", on_click=_remove_skill,
                              args=(idx,), disabled=is_analyzing)
    else:
        st.caption("No skills added yet.")

    st.text_area(
        "Additional Context (optional)",
        placeholder="I have 3 years of experience in backend but want to move to full-stack. I prefer video courses.",
        key="context_input",
        disabled=is_analyzing,
    )

    if st.session_state.get("input_error"):
        st.error(st.session_state["input_error"])

    st.button(
        "🔍 Analyzing..." if is_analyzing else "🔍 Analyze Gap",
        type="primary",
        on_click=_submit_analysis,
        disabled=is_analyzing,
        use_container_width=True,
    )


def run_analysis(user: User, llm_client: Optional[LLMClient]) -> None:
    """Call the AI service for the submitted input and award badges."""
    if llm_client is None:
        st.session_state["error_msg"] = ANALYSIS_ERROR_MESSAGE
        st.session_state["app_state"] = ERROR
        return

    with st.spinner("Scanning industry requirements... identifying core competencies... curating learning resources..."):
        try:
            result = analyze_skill_gap(
                st.session_state["target_role"],
                st.session_state["current_skills"],
                st.session_state["analysis_context"],
                llm_client,
            )
        except (AnalysisError, ValueError) as e:
            logger.error(f"Skill gap analysis error: {str(e)}")
            st.session_state["error_msg"] = ANALYSIS_ERROR_MESSAGE
            st.session_state["app_state"] = ERROR
            return

    get_badge_repository().merge(user.id, score_to_badges(result))
    st.session_state["analysis_result"] = result
    st.session_state["app_state"] = RESULTS


# --- Dashboard ---

def render_overview(result: AnalysisResult) -> None:
    st.subheader("📈 Market Overview")
    st.write(result["marketSummary"])

    top_skills = result["topSkillsRequired"]
    if top_skills:
        st.markdown("**Most In-Demand Skills**")
        chart_df = pd.DataFrame(
            {
                "Skill": [s.get("name", "") for s in top_skills],
                "Market Demand": [clamp_percentage(s.get("frequency")) for s in top_skills],
            }
        ).set_index("Skill")
        st.bar_chart(chart_df)

    st.subheader("⚠️ Skill Gaps")
    if not result["gaps"]:
        st.success("No significant gaps found. Great work!")
    for gap in result["gaps"]:
        with st.container(border=True):
            st.markdown(f"**{gap.get('skillName', '')}** · {importance_label(gap.get('importance', ''))}")
            col1, col2 = st.columns(2)
            col1.caption(f"Your level: {gap.get('userLevel', 'N/A')}")
            col2.caption(f"Market needs: {gap.get('marketRequirement', 'N/A')}")
            st.write(gap.get("gapDescription", ""))

    st.subheader("🏅 Badges Earned")
    cols = st.columns(4)
    for idx, badge in enumerate(score_to_badges(result)):
        with cols[idx % 4]:
            st.markdown(badge_label(badge))
            st.caption(badge.description)


def render_learning_path(result: AnalysisResult) -> None:
    st.subheader("🧭 Your Learning Path")
    if not result["learningPath"]:
        st.info("No learning steps were suggested.")
        return

    for step in result["learningPath"]:
        with st.expander(f"Step {step.get('stepNumber', '?')}: {step.get('topic', '')}", expanded=True):
            st.write(step.get("description", ""))
            for resource in step.get("resources", []):
                icon = RESOURCE_ICONS.get(resource.get("type"), "📚")
                title = resource.get("title", "")
                if resource.get("url"):
                    title = f"[{title}]({resource['url']})"
                st.markdown(
                    f"{icon} **{title}** · {resource.get('provider', '')} · "
                    f"{resource.get('estimatedDuration', '')}"
                )
                if resource.get("description"):
                    st.caption(resource["description"])


def _start_resume_insights() -> None:
    st.session_state["resume_loading"] = True
    st.session_state["resume_error"] = ""


def render_resume_builder(role: str, skills: List[Skill], llm_client: Optional[LLMClient]) -> None:
    st.subheader("📝 AI Resume Optimizer")
    st.caption(f"Get tailored suggestions to update your resume for {role}.")

    is_loading = st.session_state["resume_loading"]
    st.button(
        "✨ Optimizing..." if is_loading else ("✨ Regenerate Insights" if st.session_state["resume_insights"] else "✨ Generate Insights"),
        on_click=_start_resume_insights,
        disabled=is_loading or llm_client is None,
    )

    if is_loading and llm_client is not None:
        with st.spinner("Generating resume insights..."):
            try:
                st.session_state["resume_insights"] = generate_resume_insights(role, skills, llm_client)
            except ResumeInsightsError as e:
                logger.error(f"Resume insights error: {str(e)}")
                st.session_state["resume_error"] = RESUME_ERROR_MESSAGE
            finally:
                st.session_state["resume_loading"] = False
        st.rerun()

    if st.session_state["resume_error"]:
        st.error(st.session_state["resume_error"])

    insights = st.session_state["resume_insights"]
    if insights:
        st.markdown("**Professional Summary**")
        st.code(insights["professionalSummary"], language=None, wrap_lines=True)

        col1, col2 = st.columns(2)
        with col1:
            st.markdown("**Key Achievements**")
            for item in insights["achievements"]:
                st.markdown(f"- {item}")
        with col2:
            st.markdown("**ATS Keywords**")
            st.write(" · ".join(f"`{k}`" for k in insights["keywords"]))


def _message_role(message: ChatMessage) -> str:
    return "assistant" if message.role == "model" else "user"


def _queue_chat_prompt() -> None:
    prompt = (st.session_state.get("chat_prompt") or "").strip()
    if not prompt or st.session_state["chat_busy"]:
        return
    st.session_state["chat_messages"].append(ChatMessage(id=new_message_id(), role="user", text=prompt))
    st.session_state["pending_chat_prompt"] = prompt
    st.session_state["chat_busy"] = True


def render_chat(result: AnalysisResult, llm_client: Optional[LLMClient]) -> None:
    st.subheader(f"💬 Chat with {COACH_NAME}")

    if llm_client is None:
        st.warning("The AI coach is unavailable. Check your API key configuration.")
        return

    if st.session_state["chat_session"] is None:
        st.session_state["chat_session"] = open_chat_session(result, llm_client)
        st.session_state["chat_messages"] = [greeting_message(result)]

    for message in st.session_state["chat_messages"]:
        with st.chat_message(_message_role(message)):
            st.markdown(message.text)

    # Submitting sets chat_busy in the callback, so this run draws the input disabled
    st.chat_input(
        "Ask about your gaps or learning path...",
        key="chat_prompt",
        on_submit=_queue_chat_prompt,
        disabled=st.session_state["chat_busy"],
    )

    prompt = st.session_state["pending_chat_prompt"]
    if not st.session_state["chat_busy"] or not prompt:
        return

    final: Optional[ChatMessage] = None
    try:
        with st.chat_message("assistant"):
            placeholder = st.empty()
            for snapshot in stream_reply(st.session_state["chat_session"], prompt):
                placeholder.markdown(snapshot.text + ("▌" if snapshot.is_streaming else ""))
                final = snapshot
    except ChatBusyError as e:
        st.warning(str(e))
    finally:
        st.session_state["chat_busy"] = False
        st.session_state["pending_chat_prompt"] = ""

    if final is not None:
        st.session_state["chat_messages"].append(final)
    st.rerun()


def render_dashboard(result: AnalysisResult, llm_client: Optional[LLMClient]) -> None:
    col_title, col_score, col_reset = st.columns([3, 1, 1])
    with col_title:
        st.caption("Target Role")
        st.header(result["jobTitle"])
    with col_score:
        st.metric("Match Score", f"{clamp_percentage(result['matchScore'])}%")
    with col_reset:
        st.markdown("<br>", unsafe_allow_html=True)
        st.button("↩️ New Analysis", on_click=reset_analysis, use_container_width=True)

    st.progress(clamp_percentage(result["matchScore"]) / 100)

    tab1, tab2, tab3, tab4 = st.tabs([
        "📊 Overview",
        "🧭 Learning Path",
        "📝 Resume Optimizer",
        f"💬 {COACH_NAME} Coach",
    ])
    with tab1:
        render_overview(result)
    with tab2:
        render_learning_path(result)
    with tab3:
        render_resume_builder(st.session_state["target_role"], st.session_state["current_skills"], llm_client)
    with tab4:
        render_chat(result, llm_client)


def render_error() -> None:
    st.error(f"**Analysis Failed**\n\n{st.session_state['error_msg']}")
    st.button("Try Again", on_click=reset_analysis)


def main():
    """Main application."""
    # Restore a saved session once per browser session
    if st.session_state["user"] is None and not st.session_state.get("session_checked"):
        st.session_state["user"] = get_auth_service().get_current_user()
        st.session_state["session_checked"] = True

    user: Optional[User] = st.session_state["user"]
    if user is None:
        render_auth_screen()
        return

    llm_client = initialize_llm_client()
    render_profile_sidebar(user)

    st.title(f"🧭 {APP_TITLE}")
    if llm_client is None:
        st.warning("⚠️ AI service not configured. Set GEMINI_API_KEY (or LLM_PROVIDER=ollama) in your .env file.")

    app_state = st.session_state["app_state"]
    if app_state == IDLE:
        st.markdown("### Bridge Your Skill Gap. Accelerate Your Career.")
        st.write(
            "Our AI analyzes market demands to compare your skills against your dream job "
            "and builds a personalized curriculum to get you there."
        )
        render_analysis_input(is_analyzing=False)
    elif app_state == ANALYZING:
        render_analysis_input(is_analyzing=True)
        run_analysis(user, llm_client)
        st.rerun()
    elif app_state == RESULTS and st.session_state["analysis_result"]:
        render_dashboard(st.session_state["analysis_result"], llm_client)
    else:
        render_error()


if __name__ == "__main__":
    main()
