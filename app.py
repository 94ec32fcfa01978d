"""
CyberPath - Offensive Security Learning Tracker

Streamlit dashboard for tracking progress through the curriculum, getting
next-step suggestions and collecting achievements.

Usage:
    python scripts/seed_database.py
    streamlit run app.py
"""

import logging

import streamlit as st

from cyberpath import CyberPathError, Tracker, configure_logging, get_settings
from cyberpath.schemas import Priority, UnitAvailability


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

SETTINGS = get_settings()
configure_logging(SETTINGS.log_level)
logger = logging.getLogger(__name__)

STATUS_INDICATORS = {
    UnitAvailability.COMPLETED: "✓",
    UnitAvailability.IN_PROGRESS: "→",
    UnitAvailability.AVAILABLE: "○",
    UnitAvailability.LOCKED: "◌",
}

PRIORITY_COLORS = {
    Priority.HIGH: "#D32F2F",
    Priority.MEDIUM: "#F57C00",
    Priority.LOW: "#388E3C",
}

st.set_page_config(
    page_title="CyberPath",
    page_icon="🛡️",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "tracker" not in st.session_state:
        try:
            st.session_state.tracker = Tracker.from_settings(SETTINGS)
        except (FileNotFoundError, CyberPathError) as e:
            logger.error(f"Could not start tracker: {e}")
            st.session_state.tracker = None
            st.session_state.startup_error = str(e)

    if "learner_id" not in st.session_state and st.session_state.tracker:
        try:
            st.session_state.learner_id = st.session_state.tracker.find_learner(SETTINGS.username).id
        except CyberPathError as e:
            logger.warning(f"No learner for {SETTINGS.username}: {e}")
            st.session_state.learner_id = None

    if "view_mode" not in st.session_state:
        st.session_state.view_mode = "units"  # units, suggestions, achievements, projects

    if "pending_toasts" not in st.session_state:
        st.session_state.pending_toasts = []


def show_pending_toasts():
    """Show achievement toasts queued before the last rerun."""
    for message in st.session_state.pending_toasts:
        st.toast(message, icon="🏆")
    st.session_state.pending_toasts = []


def queue_unlocks(unlocked):
    for achievement in unlocked:
        st.session_state.pending_toasts.append(f"Achievement unlocked: {achievement.title}")


# -----------------------------------------------------------------------------
# Sidebar
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with progress summary and view selector."""
    st.sidebar.title("🛡️ CyberPath")

    tracker = st.session_state.tracker
    stats = tracker.get_progress_summary(st.session_state.learner_id)

    st.sidebar.markdown(f"""
    **Progress:** {stats['unit_stats']} modules ({stats['completion_percent']}%)

    **Projects:** {stats['projects']} · **Posts:** {stats['posts']} · **Achievements:** {stats['achievements']}
    """)
    st.sidebar.progress(stats['completion_percent'] / 100)

    st.sidebar.divider()

    modes = ["units", "suggestions", "achievements", "projects"]
    view_mode = st.sidebar.radio(
        "Select view",
        ["Modules", "Suggestions", "Achievements", "Projects"],
        index=modes.index(st.session_state.view_mode),
        label_visibility="collapsed",
    )
    st.session_state.view_mode = modes[["Modules", "Suggestions", "Achievements", "Projects"].index(view_mode)]


# -----------------------------------------------------------------------------
# Modules View
# -----------------------------------------------------------------------------

def render_units_view():
    """Render the curriculum with availability and progress controls."""
    tracker = st.session_state.tracker
    learner_id = st.session_state.learner_id

    st.title("Learning Roadmap")
    study_order = [tracker.graph.get(uid).title for uid in tracker.graph.topological_order()]
    st.caption("Study order: " + " → ".join(study_order))

    for view in tracker.get_unit_views(learner_id):
        unit = view.unit
        indicator = STATUS_INDICATORS[view.availability]
        with st.container(border=True):
            st.markdown(f"### {indicator} {unit.title}")
            st.markdown(unit.description)
            st.caption("Tools: " + ", ".join(unit.tools))
            unlocks = [tracker.graph.get(uid).title for uid in tracker.graph.dependents(unit.id)]
            if unlocks:
                st.caption("Unlocks: " + ", ".join(unlocks))
            st.progress(view.percent / 100, text=f"{view.percent}%")

            if view.availability == UnitAvailability.LOCKED:
                missing = [tracker.graph.get(uid).title for uid in view.missing_prerequisites]
                st.info("Locked. Complete first: " + ", ".join(missing))
                continue

            if view.availability == UnitAvailability.COMPLETED:
                st.success("Module completed!")
                continue

            col1, col2 = st.columns([3, 1])
            with col1:
                percent = st.slider(
                    "Progress", 0, 100, view.percent, step=5,
                    key=f"percent_{unit.id}", label_visibility="collapsed",
                )
                if percent != view.percent:
                    tracker.update_progress(learner_id, unit.id, percent=percent)
                    st.rerun()
            with col2:
                if st.button("Mark complete", key=f"complete_{unit.id}", type="primary", use_container_width=True):
                    queue_unlocks(tracker.complete_unit(learner_id, unit.id, percent=100))
                    st.rerun()


# -----------------------------------------------------------------------------
# Suggestions View
# -----------------------------------------------------------------------------

def render_suggestions_view():
    """Render the ranked suggestion list."""
    tracker = st.session_state.tracker

    st.title("Suggested Next Steps")

    suggestions = tracker.get_recommendations(st.session_state.learner_id)
    if not suggestions:
        st.info("Nothing to suggest right now.")
        return

    for suggestion in suggestions:
        color = PRIORITY_COLORS[suggestion.priority]
        with st.container(border=True):
            st.markdown(
                f"<span style='color: {color}; font-weight: bold;'>{suggestion.priority.value.upper()}</span> "
                f"· {suggestion.kind.value} · {suggestion.category}",
                unsafe_allow_html=True,
            )
            st.markdown(f"**{suggestion.title}**")
            st.markdown(suggestion.description)
            st.caption(suggestion.reason)
            details = []
            if suggestion.estimated_time:
                details.append(f"⏱ {suggestion.estimated_time}")
            if suggestion.difficulty:
                details.append(suggestion.difficulty.value)
            if details:
                st.caption(" · ".join(details))


# -----------------------------------------------------------------------------
# Achievements View
# -----------------------------------------------------------------------------

def render_achievements_view():
    """Render the achievement catalog with unlock state."""
    tracker = st.session_state.tracker

    st.title("Achievements")

    unlocked = {a.id: a for a in tracker.get_learner_achievements(st.session_state.learner_id)}
    cols = st.columns(3)
    for index, achievement in enumerate(tracker.catalog.achievements):
        with cols[index % 3]:
            with st.container(border=True):
                if achievement.id in unlocked:
                    st.markdown(f"🏆 **{achievement.title}**")
                    st.caption(f"Unlocked {unlocked[achievement.id].unlocked_at:%Y-%m-%d}")
                else:
                    st.markdown(f"🔒 **{achievement.title}**")
                st.markdown(achievement.description)


# -----------------------------------------------------------------------------
# Projects View
# -----------------------------------------------------------------------------

def render_projects_view():
    """Render project and post forms."""
    tracker = st.session_state.tracker
    learner_id = st.session_state.learner_id

    st.title("Projects & Writeups")

    with st.form("new_project", clear_on_submit=True):
        st.subheader("New project")
        title = st.text_input("Title")
        description = st.text_area("Description")
        tools = st.text_input("Tools (comma separated)", placeholder="python, nmap, bash")
        if st.form_submit_button("Save project") and title:
            tool_list = [t.strip() for t in tools.split(",") if t.strip()]
            _, unlocked = tracker.record_project(learner_id, title, description=description, tools=tool_list)
            queue_unlocks(unlocked)
            st.rerun()

    with st.form("new_post", clear_on_submit=True):
        st.subheader("New writeup")
        title = st.text_input("Title")
        content = st.text_area("Content (markdown)")
        published = st.checkbox("Publish")
        if st.form_submit_button("Save writeup") and title:
            tracker.record_post(learner_id, title, content=content, published=published)
            st.rerun()

    st.divider()
    for project in tracker.store.get_projects(learner_id):
        with st.expander(project.title):
            st.markdown(project.description or "_No description_")
            with st.form(f"edit_project_{project.id}"):
                tools = st.text_input("Tools", value=", ".join(project.tools))
                result = st.text_area("Result", value=project.result or "")
                if st.form_submit_button("Save changes"):
                    tool_list = [t.strip() for t in tools.split(",") if t.strip()]
                    tracker.update_project(project.id, tools=tool_list, result=result)
                    st.rerun()
            if st.button("Delete", key=f"delete_project_{project.id}"):
                tracker.delete_project(project.id)
                st.rerun()

    for post in tracker.store.get_posts(learner_id):
        with st.expander(f"📝 {post.title}" + ("" if post.published else " (draft)")):
            st.markdown(post.content or "_Empty_")
            st.caption(f"Updated {post.updated_at:%Y-%m-%d %H:%M}")
            col1, col2 = st.columns(2)
            with col1:
                label = "Unpublish" if post.published else "Publish"
                if st.button(label, key=f"publish_post_{post.id}"):
                    tracker.update_post(post.id, published=not post.published)
                    st.rerun()
            with col2:
                if st.button("Delete", key=f"delete_post_{post.id}"):
                    tracker.delete_post(post.id)
                    st.rerun()


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()

    if not st.session_state.tracker:
        st.error(f"Could not start: {st.session_state.startup_error}")
        st.code("python scripts/seed_database.py")
        return

    if st.session_state.learner_id is None:
        del st.session_state.learner_id
        st.error(f"No learner named {SETTINGS.username}. Seed the database first.")
        st.code(f"python scripts/seed_database.py --username {SETTINGS.username}")
        return

    show_pending_toasts()
    render_sidebar()

    if st.session_state.view_mode == "units":
        render_units_view()
    elif st.session_state.view_mode == "suggestions":
        render_suggestions_view()
    elif st.session_state.view_mode == "achievements":
        render_achievements_view()
    elif st.session_state.view_mode == "projects":
        render_projects_view()


if __name__ == "__main__":
    main()
