"""Box score: per-player lines, team totals, and the score ledger check."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from .live_stats.types import AWAY, HOME, PLAYER_STAT_FIELDS


def shooting_pct(made: int, attempted: int) -> float | None:
    """Percentage to one decimal, or None with no attempts."""
    if attempted <= 0:
        return None
    return round(made / attempted * 100, 1)


def player_line(player: Mapping[str, Any]) -> dict[str, Any]:
    stats = {name: int(player.get(name) or 0) for name in PLAYER_STAT_FIELDS}
    return {
        "player_id": player["id"],
        "name": player["name"],
        "jersey_number": player.get("jersey_number"),
        "team": player["team"],
        "on_court": bool(player.get("on_court")),
        **stats,
        "rebounds": stats["rebounds_off"] + stats["rebounds_def"],
        "fg_pct": shooting_pct(stats["fgm"], stats["fga"]),
        "three_pct": shooting_pct(stats["three_pm"], stats["three_pa"]),
        "ft_pct": shooting_pct(stats["ftm"], stats["fta"]),
    }


def team_totals(lines: Iterable[Mapping[str, Any]]) -> dict[str, int]:
    totals = {name: 0 for name in PLAYER_STAT_FIELDS}
    totals["rebounds"] = 0
    for line in lines:
        for name in totals:
            totals[name] += line[name]
    return totals


def ledger_points(events: Iterable[Mapping[str, Any]]) -> dict[str, int]:
    """Sum event points per side."""
    points = {HOME: 0, AWAY: 0}
    for event in events:
        team = event.get("team")
        if team in points:
            points[team] += int(event.get("points") or 0)
    return points


def build_box_score(
    game: Mapping[str, Any],
    players: Iterable[Mapping[str, Any]],
    events: Iterable[Mapping[str, Any]],
) -> dict[str, Any]:
    """Assemble the box score for one game.

    ``ledger_consistent`` is False when the scoreboard and the event log
    disagree, which happens after overlapping confirms from two scorekeepers.
    """
    lines = [player_line(player) for player in players]
    ledger = ledger_points(events)
    teams = {}
    for side in (HOME, AWAY):
        side_lines = [line for line in lines if line["team"] == side]
        teams[side] = {
            "name": game.get(f"{side}_team_name"),
            "score": int(game.get(f"{side}_score") or 0),
            "ledger_points": ledger[side],
            "players": side_lines,
            "totals": team_totals(side_lines),
        }
    return {
        "game_id": game["id"],
        "quarter": game.get("quarter"),
        "teams": teams,
        "ledger_consistent": all(
            teams[side]["score"] == teams[side]["ledger_points"] for side in (HOME, AWAY)
        ),
    }
