"""
Narcotics Intelligence Platform - Streamlit UI
Content analysis, user investigation and the live dashboard, backed by the API.
"""

import base64
from typing import Any, Dict, Optional

import requests
import streamlit as st
from pydantic import ValidationError

from narcintel.config import settings
from narcintel.schemas.flow_schemas import ContentSubmission, Platform, UserSubmission


st.set_page_config(
    page_title="Narcotics Intelligence Platform",
    page_icon="🛡️",
    layout="wide",
)

PLATFORMS = [p.value for p in Platform]
RISK_ICONS = {"Low": "🟢", "Medium": "🟡", "High": "🔴", "Critical": "🚨"}


# ---------- Helpers ----------


def call_api(base_url: str, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Call the backend and return the JSON body; raises for HTTP errors."""
    endpoint = base_url.rstrip("/") + path
    resp = requests.request(method, endpoint, json=payload, timeout=180)
    resp.raise_for_status()
    return resp.json()


def to_data_uri(uploaded) -> Optional[str]:
    if uploaded is None:
        return None
    encoded = base64.b64encode(uploaded.getvalue()).decode("utf-8")
    return f"data:{uploaded.type or 'image/png'};base64,{encoded}"


def show_validation_errors(error: ValidationError):
    for err in error.errors():
        field = ".".join(str(part) for part in err["loc"])
        st.error(f"{field}: {err['msg']}")


def show_api_error(e: Exception, title: str):
    if isinstance(e, requests.exceptions.HTTPError) and e.response is not None:
        try:
            detail = e.response.json().get("detail")
        except ValueError:
            detail = e.response.text
        st.error(f"{title}: {detail}")
    else:
        st.error(f"{title}: {e}")


def render_save_result(save: Dict[str, Any], saved_title: str):
    if not save.get("success"):
        st.error(f"Save Failed: {save.get('message')}")
    elif save.get("docId"):
        st.success(f"{saved_title} ({save['docId']})")
    else:
        st.info(save.get("message", ""))


def render_analysis(result: Dict[str, Any]):
    analysis = result["analysis"]
    risk = result["risk"]

    st.subheader("🔎 Result")
    col1, col2, col3 = st.columns(3)
    with col1:
        level = risk.get("riskLevel", "N/A")
        st.metric("Risk Level", f"{RISK_ICONS.get(level, '⚪')} {level}")
    with col2:
        st.metric("Risk Score", f"{risk.get('riskScore', 0):.0f}/100")
    with col3:
        st.metric("Content Assessment", analysis.get("riskLevel", "N/A"))
    st.progress(min(max(int(risk.get("riskScore", 0)), 0), 100))

    st.divider()
    col_left, col_right = st.columns(2)

    with col_left:
        st.markdown("**🚩 Indicators**")
        for ind in risk.get("indicators") or analysis.get("indicators") or ["None found."]:
            st.write(f"- {ind}")

        keywords = analysis.get("matchedKeywords") or []
        emojis = analysis.get("matchedEmojis") or []
        st.markdown("**🔑 Matched Keywords**")
        st.write(", ".join(keywords) if keywords else "None found.")
        st.markdown("**😶 Matched Emojis**")
        st.write(" ".join(emojis) if emojis else "None found.")

    with col_right:
        st.markdown("**📝 Reasoning**")
        st.info(analysis.get("reasoning", ""))

    st.markdown("### 📄 Report")
    st.text_area("", result["report"]["report"], height=220, disabled=True, label_visibility="collapsed")

    render_save_result(result["save"], "Flagged content has been saved to the database")

    with st.expander("🔧 Raw JSON response"):
        st.json(result)


def render_profile(result: Dict[str, Any]):
    profile = result["profile"]
    level = profile.get("riskLevel", "N/A")

    st.subheader(f"🕵️ OSINT Report: {profile.get('username')}")
    st.metric("Risk Level", f"{RISK_ICONS.get(level, '⚪')} {level}")
    st.markdown("**Summary**")
    st.write(profile.get("summary", ""))

    col_left, col_right = st.columns(2)
    with col_left:
        st.markdown("**🔗 Linked Profiles**")
        linked = profile.get("linkedProfiles") or []
        if linked:
            for p in linked:
                st.write(f"- `{p}`")
        else:
            st.write("None found.")
    with col_right:
        st.markdown("**📧 Potential Email**")
        st.write(profile.get("email") or "None found.")

    render_save_result(result["save"], f"User profile for {profile.get('username')} has been saved")


def render_dashboard(data: Dict[str, Any]):
    posts = data.get("flaggedPosts") or []
    users = data.get("suspectedUsers") or []

    if data.get("message"):
        st.error(data["message"])
    if data.get("demo"):
        st.info("Demo mode: no document store configured, showing sample data.")
    if not posts and not users:
        st.markdown("### No Data Yet")
        st.write("Submit some analyses to populate the dashboard.")
        return

    stats = data.get("stats") or {}
    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("**Risk Level Distribution**")
        st.bar_chart({"count": stats.get("riskLevelCounts") or {}})
    with col2:
        st.markdown("**Platform Distribution**")
        st.bar_chart({"count": stats.get("platformCounts") or {}})
    with col3:
        st.markdown("**Top Keywords**")
        st.bar_chart({"count": stats.get("keywordCounts") or {}}, horizontal=True)

    col_left, col_right = st.columns(2)
    with col_left:
        st.markdown("### Recently Flagged Posts")
        st.dataframe(
            [
                {
                    "Platform": p.get("platform"),
                    "Content": p.get("text"),
                    "Risk": f"{p.get('riskLevel')} ({p.get('riskScore')})",
                    "Timestamp": p.get("timestamp"),
                }
                for p in posts
            ],
            use_container_width=True,
        )
    with col_right:
        st.markdown("### Recently Flagged Users")
        st.dataframe(
            [
                {
                    "Username": u.get("username"),
                    "Risk": u.get("risk_level"),
                    "Linked": len(u.get("linked_profiles") or []),
                    "Last Seen": u.get("last_seen"),
                }
                for u in users
            ],
            use_container_width=True,
        )


# ---------- Sidebar config ----------


st.sidebar.title("⚙️ Settings")

base_url = st.sidebar.text_input(
    "Backend URL",
    value=settings.backend_url,
    help="FastAPI server base URL.",
)

st.sidebar.markdown("---")

if st.sidebar.button("🔌 Check Connection"):
    try:
        resp = requests.get(f"{base_url.rstrip('/')}/health", timeout=5)
        if resp.status_code == 200:
            st.sidebar.success("✅ Backend is online!")
        else:
            st.sidebar.error(f"❌ Backend returned {resp.status_code}")
    except requests.exceptions.RequestException as e:
        st.sidebar.error(f"❌ Cannot connect: {e}")

if st.sidebar.button("🌱 Seed Demo Data"):
    try:
        seed = call_api(base_url, "POST", "/seed")
        if seed.get("success"):
            st.sidebar.success(seed.get("message"))
        else:
            st.sidebar.error(seed.get("message"))
    except requests.exceptions.RequestException as e:
        show_api_error(e, "Seeding failed")


# ---------- Main UI ----------


st.title("🛡️ Narcotics Intelligence Platform")
st.markdown("**AI-assisted detection of drug trafficking on social media**")
st.markdown("---")

tabs = st.tabs(["🔬 Content Analysis", "🕵️ User Investigation", "📊 Dashboard"])


# --- CONTENT ANALYSIS TAB ---
with tabs[0]:
    st.header("Content Analysis")
    st.markdown("Analyze a post or message for drug trafficking indicators.")

    platform = st.selectbox("Platform", PLATFORMS, key="content_platform")
    channel = st.text_input("Channel / Group", placeholder="e.g. @thegoodstuff")
    content = st.text_area(
        "Content",
        height=200,
        placeholder="Paste the post or message text...",
    )
    image_file = st.file_uploader("Optional image", type=["png", "jpg", "jpeg", "webp"])
    if image_file is not None:
        st.image(image_file, caption="Uploaded image", use_container_width=True)

    if st.button("🔍 Analyze Content", key="analyze_content", type="primary"):
        try:
            submission = ContentSubmission(
                platform=platform,
                channel=channel,
                content=content,
                image=to_data_uri(image_file),
            )
        except ValidationError as e:
            show_validation_errors(e)
        else:
            with st.spinner("Analyzing content, assessing risk and writing report..."):
                try:
                    result = call_api(base_url, "POST", "/analyze", submission.model_dump(by_alias=True))
                    render_analysis(result)
                except requests.exceptions.RequestException as e:
                    show_api_error(e, "Analysis Failed")


# --- USER INVESTIGATION TAB ---
with tabs[1]:
    st.header("User Investigation")
    st.markdown("Perform OSINT analysis on a username.")

    user_platform = st.selectbox("Platform", PLATFORMS, key="user_platform")
    username = st.text_input("Username", placeholder="e.g. lsd_plug")

    if st.button("🔍 Investigate User", key="investigate_user", type="primary"):
        try:
            user_submission = UserSubmission(platform=user_platform, username=username)
        except ValidationError as e:
            show_validation_errors(e)
        else:
            with st.spinner("Investigating..."):
                try:
                    result = call_api(base_url, "POST", "/investigate", user_submission.model_dump(by_alias=True))
                    render_profile(result)
                except requests.exceptions.RequestException as e:
                    show_api_error(e, "Investigation Failed")


# --- DASHBOARD TAB ---
with tabs[2]:
    st.header("Intelligence Dashboard")

    if st.button("🔄 Refresh", key="refresh_dashboard"):
        st.rerun()

    try:
        render_dashboard(call_api(base_url, "GET", "/dashboard"))
    except requests.exceptions.RequestException as e:
        show_api_error(e, "Could not fetch dashboard data")


# --- Footer ---
st.markdown("---")
st.markdown(
    "<div style='text-align: center; color: gray;'>"
    "Narcotics Intelligence Platform v0.1.0"
    "</div>",
    unsafe_allow_html=True,
)
