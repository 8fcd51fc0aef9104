from __future__ import annotations

import html as _html

import streamlit as st

from dashboard_page.styles import clean_html_block, pill_class
from team_stats import progress_pct


def fmt_money(value: float) -> str:
    return f"${value:,.0f}"


def fmt_metric(value: float, suffix: str = "") -> str:
    if abs(value - round(value)) < 1e-9:
        return f"{int(round(value)):,}{suffix}"
    return f"{value:,.1f}{suffix}"


def render_top_bar(*, backend_name: str, is_locked: bool, project_count: int) -> None:
    if is_locked:
        chip = '<span class="backend-chip locked">Not authenticated</span>'
    elif backend_name == "graphql":
        chip = '<span class="backend-chip live">Live backend</span>'
    else:
        chip = '<span class="backend-chip">Local store</span>'
    st.markdown(
        clean_html_block(
            f"""
<div class="top-bar">
  <div>
    <h1 class="dashboard-title">GEN AI Project Management</h1>
    <div class="dashboard-sub">{project_count} project(s) tracked across teams</div>
  </div>
  {chip}
</div>
"""
        ),
        unsafe_allow_html=True,
    )


def metric_card(label: str, value: str, sub: str = "", tone: str | None = None) -> None:
    cls = f"value {tone}" if tone else "value"
    st.markdown(
        clean_html_block(
            f"""
<div class="card metric">
  <div class="label">{_html.escape(label)}</div>
  <div class="{cls}">{_html.escape(value)}</div>
  <div class="sub">{_html.escape(sub)}</div>
</div>
"""
        ),
        unsafe_allow_html=True,
    )


def render_metric_row(totals: dict) -> None:
    cols = st.columns(4)
    with cols[0]:
        metric_card("Total projects", str(totals["totalProjects"]), f"{totals['onHold']} on hold")
    with cols[1]:
        metric_card(
            "Completed",
            str(totals["completed"]),
            f"{totals['progress']}% of all projects",
            tone="positive",
        )
    with cols[2]:
        metric_card("In progress", str(totals["inProgress"]), f"{totals['notStarted']} not started", tone="info")
    with cols[3]:
        metric_card(
            "Cost savings",
            fmt_money(totals["costSaving"]),
            f"AHT {fmt_metric(totals['ahtImpact'], '%')} · Quality {fmt_metric(totals['qualityImpact'], '%')}",
            tone="warn",
        )


def team_card_html(team: str, stats: dict) -> str:
    pct = progress_pct(stats)
    return clean_html_block(
        f"""
<div class="card team-card">
  <div class="team-name">{_html.escape(str(team))}</div>
  <div class="progress-track"><div class="progress-fill" style="width:{pct}%"></div></div>
  <div class="team-row"><span>Progress</span><b>{pct}%</b></div>
  <div class="team-row"><span>Projects</span><b>{stats['totalProjects']}</b></div>
  <div class="team-row"><span>Completed / In progress / Not started</span>
    <b>{stats['completed']} / {stats['inProgress']} / {stats['notStarted']}</b></div>
  <div class="team-row"><span>Cost saving</span><b>{fmt_money(stats['costSaving'])}</b></div>
  <div class="team-row"><span>AHT / Quality</span>
    <b>{fmt_metric(stats['ahtImpact'], '%')} / {fmt_metric(stats['qualityImpact'], '%')}</b></div>
</div>
"""
    )


def render_team_cards(team_stats: dict[str, dict], columns: int = 3) -> None:
    if not team_stats:
        st.caption("No teams to summarize yet.")
        return
    cols = st.columns(columns)
    for idx, (team, stats) in enumerate(team_stats.items()):
        with cols[idx % columns]:
            st.markdown(team_card_html(team, stats), unsafe_allow_html=True)


def project_card_html(project: dict) -> str:
    status = project.get("status") or ""
    priority = project.get("priority") or ""
    description = project.get("description") or ""
    desc_html = f'<div class="project-desc">{_html.escape(description)}</div>' if description else ""
    metrics_html = ""
    if status == "Completed":
        metrics_html = (
            f'<div class="project-meta">Saving {fmt_money(project.get("costSaving") or 0)} · '
            f'AHT {fmt_metric(project.get("ahtImpact") or 0, "%")} · '
            f'Quality {fmt_metric(project.get("qualityImpact") or 0, "%")}</div>'
        )
    return clean_html_block(
        f"""
<div class="card project-card">
  <div class="project-name">{_html.escape(project.get("name") or "Untitled")}</div>
  {desc_html}
  <span class="pill {pill_class(status)}">{_html.escape(status)}</span>
  <span class="pill {pill_class(priority)}">{_html.escape(priority)}</span>
  <div class="project-meta">{_html.escape(project.get("team") or "")}</div>
  {metrics_html}
</div>
"""
    )
