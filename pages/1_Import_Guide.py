import streamlit as st

from dashboard_page.styles import inject_global_css
from project_export import XLSX_MIME, import_template_bytes
from project_import import ACCEPTED_SUFFIXES, HEADER_SYNONYMS
from project_schema import FIELD_LABELS, PRIORITY_OPTIONS, STATUS_OPTIONS

st.set_page_config(page_title="AI Project Tracker", page_icon="📊", layout="wide")
inject_global_css()

st.sidebar.markdown('<div class="sidebar-title">Navigation</div>', unsafe_allow_html=True)
st.sidebar.page_link("app.py", label="Dashboard")
st.sidebar.page_link("pages/1_Import_Guide.py", label="Import guide")

st.markdown("## Import file guide")
st.markdown(
    f"Upload a delimited text file or a spreadsheet ({', '.join(ACCEPTED_SUFFIXES)}). "
    "The first non-empty row is the header row; only the first sheet of a workbook is read."
)

st.markdown("### Column matching")
st.markdown(
    "Headers are compared case-insensitively and only need to **contain** one of the tokens below. "
    "Fields are tried from top to bottom and the first match wins, so `Project Status` is a status "
    "column and `Team Name` is a team column. Columns that match nothing are ignored."
)
st.markdown(
    "\n".join(
        ["| Field | Header tokens |", "|---|---|"]
        + [
            f"| {FIELD_LABELS[target]} | {', '.join(f'`{t}`' for t in tokens)} |"
            for target, tokens in HEADER_SYNONYMS
        ]
    )
)

st.markdown("### Row rules")
st.markdown(
    "\n".join(
        [
            "- **Project Name** and **Team** are required; rows missing either are skipped.",
            f"- Status must be one of {', '.join(STATUS_OPTIONS)}; anything else becomes *Not Started*.",
            f"- Priority must be one of {', '.join(PRIORITY_OPTIONS)}; anything else becomes *Medium*.",
            "- AHT Impact, Cost Saving and Quality Impact accept numbers such as `1500`, `$1,500` or `12.5%`. "
            "Unreadable values become 0.",
            "- Impact metrics only count towards team totals for *Completed* projects.",
        ]
    )
)

st.markdown("Example:")
st.markdown(
    """
| Project | Owner | Status | Cost |
|---------|-------|--------|------|
| Widget | TeamA | In Progress | 1500 |
| Ticket triage assistant | Engineering | Completed | $360,000 |
""",
    unsafe_allow_html=False,
)

st.markdown("### Round trip")
st.markdown(
    "Files produced by **Export CSV** on the dashboard use headers that satisfy these rules, "
    "so an export can be imported back as-is."
)

st.download_button(
    "Download import template",
    data=import_template_bytes(),
    file_name="ai-projects-import-template.xlsx",
    mime=XLSX_MIME,
)
