# charts.py – team status and cost saving figures
import plotly.graph_objects as go

STATUS_COLORS = {
    "Not Started": "#9da8c6",
    "In Progress": "#4b6ff4",
    "Completed": "#2fc192",
    "On Hold": "#e9c75f",
}


def base_layout(fig, height=360):
    fig.update_layout(
        height=height,
        margin=dict(l=12, r=24, t=10, b=34),
        paper_bgcolor="#11162d",
        plot_bgcolor="#11162d",
        font=dict(color="#e8eefc", size=13, family="Inter, 'Segoe UI', sans-serif"),
        legend=dict(orientation="h", yanchor="bottom", y=1.05, xanchor="left", x=0),
        transition=dict(duration=850, easing="cubic-in-out"),
    )
    return fig


def team_status_chart(frame):
    """Stacked bars of project counts per team, one trace per tracked status."""
    fig = go.Figure()
    if frame is None or frame.empty:
        return base_layout(fig)
    teams = frame["team"].tolist()
    for column, label in (
        ("notStarted", "Not Started"),
        ("inProgress", "In Progress"),
        ("completed", "Completed"),
    ):
        fig.add_bar(
            x=teams,
            y=frame[column].tolist(),
            name=label,
            marker_color=STATUS_COLORS[label],
            hovertemplate="%{x}<br>" + label + ": %{y}<extra></extra>",
        )
    other = (frame["totalProjects"] - frame["notStarted"] - frame["inProgress"] - frame["completed"]).tolist()
    if any(other):
        fig.add_bar(
            x=teams,
            y=other,
            name="On Hold / other",
            marker_color=STATUS_COLORS["On Hold"],
            hovertemplate="%{x}<br>Other: %{y}<extra></extra>",
        )
    fig.add_trace(
        go.Scatter(
            x=teams,
            y=frame["totalProjects"].tolist(),
            mode="text",
            text=[f"{p}%" for p in frame["progress"].tolist()],
            textposition="top center",
            showlegend=False,
            hoverinfo="skip",
        )
    )
    base_layout(fig)
    fig.update_layout(barmode="stack")
    fig.update_yaxes(
        title="Projects",
        rangemode="tozero",
        gridcolor="rgba(255,255,255,0.08)",
        tickfont=dict(size=12),
    )
    fig.update_xaxes(showgrid=False, tickfont=dict(size=12))
    return fig


def cost_saving_chart(frame):
    fig = go.Figure()
    if frame is None or frame.empty:
        return base_layout(fig, height=300)
    fig.add_bar(
        x=frame["costSaving"].tolist(),
        y=frame["team"].tolist(),
        orientation="h",
        marker_color="#2fc192",
        hovertemplate="%{y}<br>Cost saving: $%{x:,.0f}<extra></extra>",
    )
    base_layout(fig, height=300)
    fig.update_xaxes(title="Cost saving ($)", gridcolor="rgba(255,255,255,0.08)", tickformat="$,.0f")
    fig.update_yaxes(autorange="reversed")
    return fig
