from __future__ import annotations

from team_stats import compute_team_stats, dashboard_totals, progress_pct, team_stats_frame


def _p(team, status, **metrics):
    project = {"name": f"{team}-{status}", "team": team, "status": status}
    project.update(metrics)
    return project


def test_one_project_per_status():
    projects = [
        _p("X", "Not Started"),
        _p("X", "In Progress"),
        _p("X", "Completed", ahtImpact=10, costSaving=100, qualityImpact=5),
        _p("X", "On Hold"),
    ]
    stats = compute_team_stats(projects)
    assert stats == {
        "X": {
            "totalProjects": 4,
            "notStarted": 1,
            "inProgress": 1,
            "completed": 1,
            "ahtImpact": 10,
            "costSaving": 100,
            "qualityImpact": 5,
        }
    }


def test_totals_match_input_length_and_counters_bounded():
    projects = [
        _p("A", "Completed", costSaving=1),
        _p("B", "In Progress"),
        _p("A", "On Hold"),
        _p("C", "Blocked"),
        _p("B", "Not Started"),
        _p("A", "Completed", costSaving="2"),
    ]
    stats = compute_team_stats(projects)
    assert sum(s["totalProjects"] for s in stats.values()) == len(projects)
    for team, s in stats.items():
        tracked = s["notStarted"] + s["inProgress"] + s["completed"]
        assert tracked <= s["totalProjects"], team
    assert stats["B"]["notStarted"] + stats["B"]["inProgress"] == stats["B"]["totalProjects"]
    assert stats["A"]["costSaving"] == 3
    assert stats["C"]["totalProjects"] == 1
    assert stats["C"]["notStarted"] + stats["C"]["inProgress"] + stats["C"]["completed"] == 0


def test_metrics_only_count_completed_projects():
    projects = [
        _p("A", "In Progress", ahtImpact=50, costSaving=999, qualityImpact=7),
        _p("A", "Completed", ahtImpact=None, costSaving="n/a"),
    ]
    stats = compute_team_stats(projects)["A"]
    assert stats["completed"] == 1
    assert stats["ahtImpact"] == 0
    assert stats["costSaving"] == 0
    assert stats["qualityImpact"] == 0


def test_team_and_status_matching_is_exact():
    projects = [_p("Sales", "Completed"), _p("sales", "completed"), _p("Sales ", "Completed")]
    stats = compute_team_stats(projects)
    assert list(stats) == ["Sales", "sales", "Sales "]
    assert stats["sales"]["completed"] == 0
    assert stats["sales"]["totalProjects"] == 1


def test_teams_keep_first_seen_order():
    projects = [_p("Design", "Completed"), _p("Engineering", "Completed"), _p("Design", "On Hold")]
    assert list(compute_team_stats(projects)) == ["Design", "Engineering"]


def test_progress_pct():
    assert progress_pct({"totalProjects": 0, "completed": 0}) == 0
    assert progress_pct({}) == 0
    assert progress_pct({"totalProjects": 3, "completed": 1}) == 33
    assert progress_pct({"totalProjects": 3, "completed": 2}) == 67
    assert progress_pct({"totalProjects": 8, "completed": 1}) == 13
    assert progress_pct({"totalProjects": 4, "completed": 4}) == 100


def test_empty_input():
    assert compute_team_stats([]) == {}
    totals = dashboard_totals([])
    assert totals["totalProjects"] == 0
    assert totals["progress"] == 0
    frame = team_stats_frame({})
    assert frame.empty
    assert "progress" in frame.columns


def test_dashboard_totals():
    projects = [
        _p("A", "Completed", costSaving=1500, ahtImpact=2.5),
        _p("B", "Completed", costSaving=500),
        _p("B", "On Hold", costSaving=10_000),
        _p("C", "In Progress"),
    ]
    totals = dashboard_totals(projects)
    assert totals["totalProjects"] == 4
    assert totals["completed"] == 2
    assert totals["onHold"] == 1
    assert totals["inProgress"] == 1
    assert totals["costSaving"] == 2000
    assert totals["ahtImpact"] == 2.5
    assert totals["progress"] == 50


def test_team_stats_frame():
    stats = compute_team_stats([_p("A", "Completed"), _p("A", "Not Started"), _p("B", "On Hold")])
    frame = team_stats_frame(stats)
    assert frame["team"].tolist() == ["A", "B"]
    assert frame["progress"].tolist() == [50, 0]
    assert frame["totalProjects"].tolist() == [2, 1]
