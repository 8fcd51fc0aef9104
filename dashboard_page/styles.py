from __future__ import annotations

import os
import textwrap

import streamlit as st

GLOBAL_CSS = """
<style id="project-tracker-global-css">
@import url('https://fonts.googleapis.com/css2?family=DM+Sans:wght@400;600;700&family=Space+Grotesk:wght@500;600;700&display=swap');

:root{
  --bg:#0d1330;
  --card:#161d3a;
  --border:rgba(255,255,255,0.08);
  --text:#e8eefc;
  --muted:#9da8c6;
  --accent:#e9c75f;
  --accent-2:#2fc192;
  --accent-3:#4b6ff4;
  --danger:#f97070;
  --radius:14px;
  --shadow:0 16px 40px rgba(0,0,0,0.45);
}

body, [data-testid="stAppViewContainer"], .main{
  background:var(--bg);
  color:var(--text);
  font-family:'DM Sans','Segoe UI',sans-serif;
  font-size:15px;
}
.block-container{ padding:18px 24px 40px 24px; max-width:min(1400px, calc(100vw - 48px)); }
header,[data-testid="stToolbar"]{ background:transparent !important; }
[data-testid="stSidebar"]{ background:var(--bg) !important; }
[data-testid="stSidebarNav"]{ display:none !important; }

/* ===== Top bar ===== */
.top-bar{
  display:flex;
  align-items:center;
  justify-content:space-between;
  gap:16px;
  margin-bottom:18px;
}
.dashboard-title{
  font-family:'Space Grotesk','DM Sans',sans-serif;
  font-size:clamp(26px, 3.4vw, 38px);
  font-weight:700;
  margin:0;
}
.dashboard-sub{ font-size:14px; color:var(--muted); }
.backend-chip{
  font-size:11px;
  font-weight:700;
  text-transform:uppercase;
  letter-spacing:0.12em;
  padding:4px 10px;
  border-radius:999px;
  border:1px solid rgba(148,163,184,0.25);
  background:rgba(15,23,42,0.45);
  color:var(--muted);
}
.backend-chip.live{ border-color:rgba(47,193,146,0.45); color:var(--accent-2); }
.backend-chip.locked{ border-color:rgba(249,112,112,0.45); color:var(--danger); }

/* ===== Cards ===== */
.card{
  position:relative;
  background:linear-gradient(180deg, rgba(22,29,58,.96), rgba(13,19,48,.92));
  border:1px solid var(--border);
  border-radius:var(--radius);
  box-shadow:var(--shadow);
  padding:12px 14px;
  overflow:hidden;
  margin-bottom:12px;
}
.card.metric .label{ font-size:13px; color:var(--muted); text-transform:uppercase; letter-spacing:0.08em; }
.card.metric .value{ font-size:28px; font-weight:700; font-family:'Space Grotesk','DM Sans',sans-serif; }
.card.metric .value.positive{ color:var(--accent-2); }
.card.metric .value.info{ color:var(--accent-3); }
.card.metric .value.warn{ color:var(--accent); }
.card.metric .sub{ font-size:12px; color:var(--muted); }

.team-card .team-name{ font-size:16px; font-weight:700; margin-bottom:6px; }
.team-card .team-row{ display:flex; justify-content:space-between; font-size:13px; color:var(--muted); }
.team-card .team-row b{ color:var(--text); }
.progress-track{
  height:8px;
  border-radius:999px;
  background:rgba(255,255,255,0.08);
  margin:8px 0 6px;
  overflow:hidden;
}
.progress-fill{
  height:100%;
  border-radius:999px;
  background:linear-gradient(90deg, var(--accent-3), var(--accent-2));
}

/* ===== Status / priority pills ===== */
.pill{
  display:inline-block;
  font-size:11px;
  font-weight:700;
  padding:2px 8px;
  border-radius:999px;
  border:1px solid rgba(148,163,184,0.25);
}
.pill.not-started{ color:var(--muted); }
.pill.in-progress{ color:var(--accent-3); border-color:rgba(75,111,244,0.45); }
.pill.completed{ color:var(--accent-2); border-color:rgba(47,193,146,0.45); }
.pill.on-hold{ color:var(--accent); border-color:rgba(233,199,95,0.45); }
.pill.critical{ color:var(--danger); border-color:rgba(249,112,112,0.45); }

.project-card .project-name{ font-size:16px; font-weight:700; }
.project-card .project-desc{ font-size:13px; color:var(--muted); margin:4px 0 8px; }
.project-card .project-meta{ font-size:12px; color:var(--muted); }

.sidebar-title{
  font-size:12px;
  font-weight:700;
  text-transform:uppercase;
  letter-spacing:0.12em;
  color:var(--muted);
  margin:8px 0 4px;
}
.section-heading{
  font-size:17px;
  font-weight:700;
  font-family:'Space Grotesk','DM Sans',sans-serif;
  margin:14px 0 8px;
}
</style>
"""


def should_disable_css() -> bool:
    params: dict[str, object] = {}
    try:
        params = dict(st.query_params)
    except Exception:
        params = {}

    nocss_value = str(params.get("nocss", "")).strip().lower()
    if nocss_value in {"1", "true", "yes", "on"}:
        return True

    env_value = os.getenv("PROJECTS_NO_CSS", "").strip().lower()
    return env_value in {"1", "true", "yes", "on"}


def inject_global_css() -> None:
    if should_disable_css():
        return
    st.markdown(GLOBAL_CSS, unsafe_allow_html=True)


def clean_html_block(markup: str) -> str:
    cleaned = textwrap.dedent(markup).strip()
    return "\n".join(line.lstrip() for line in cleaned.splitlines())


def pill_class(value: str | None) -> str:
    return "-".join((value or "").lower().split())
