"""Unit tests for kill/death quality grading."""

import pytest

from matchscore.contracts.common import Position
from matchscore.contracts.scoring import KillEvent
from matchscore.core.extraction.kill_events import extract_kill_events
from matchscore.core.scoring.kill_quality import (
    analyze_kill_death_quality,
    analyze_participant_events,
    count_nearby_deaths,
    position_score,
)

PLAYER = 1


def _at(progress: float) -> Position:
    """Point on the base-to-base diagonal, 0 at blue base and 1 at red base."""
    coordinate = int(2500 + progress * 10000)
    return Position(x=coordinate, y=coordinate)


def _kill(timestamp: int, killer: int, victim: int, position: Position, victim_gold: int = 0) -> KillEvent:
    return KillEvent(
        timestamp=timestamp,
        killer_id=killer,
        victim_id=victim,
        position=position,
        victim_gold=victim_gold,
    )


class TestPositionScore:
    @pytest.mark.parametrize(("progress", "expected"), [(0.0, 0.0), (0.1, 0.1), (0.5, 0.5), (1.0, 1.0)])
    def test_blue_side(self, progress, expected):
        assert position_score(_at(progress), 100) == pytest.approx(expected)

    def test_red_side_is_mirrored(self):
        assert position_score(_at(0.1), 200) == pytest.approx(0.9)

    def test_outside_the_bases_is_clamped(self):
        assert position_score(Position(x=0, y=0), 100) == 0.0
        assert position_score(Position(x=14800, y=14800), 100) == 1.0

    def test_off_diagonal_uses_projection(self):
        # Top-left and bottom-right corners are equidistant from both bases
        assert position_score(Position(x=2500, y=12500), 100) == pytest.approx(0.5)


class TestNearbyDeaths:
    def test_counts_other_victims_close_in_time_and_space(self):
        kills = [
            _kill(10_000, 6, 1, _at(0.5)),
            _kill(12_000, 7, 2, Position(x=7600, y=7400)),
            _kill(14_900, 1, 6, Position(x=7000, y=8000)),
            _kill(30_000, 8, 3, _at(0.5)),  # too late
            _kill(11_000, 9, 4, _at(0.1)),  # too far
        ]
        assert count_nearby_deaths(kills) == [2, 2, 2, 0, 0]

    def test_same_victim_not_counted(self):
        kills = [_kill(1000, 6, 1, _at(0.5)), _kill(2000, 7, 1, _at(0.5))]
        assert count_nearby_deaths(kills) == [0, 0]

    def test_empty(self):
        assert count_nearby_deaths([]) == []


class TestDeathGrading:
    def test_rich_solo_death_at_home_worse_than_teamfight_death_deep(self):
        solo = [_kill(60_000, 6, PLAYER, _at(0.1), victim_gold=2500)]
        cluster = [
            _kill(120_000, 6, PLAYER, _at(0.9), victim_gold=2500),
            _kill(121_000, 2, 7, _at(0.9)),
            _kill(122_000, 3, 8, _at(0.9)),
            _kill(123_000, 4, 9, _at(0.9)),
        ]

        solo_quality = analyze_kill_death_quality(solo, PLAYER, 100, max_gold=2500)
        cluster_quality = analyze_kill_death_quality(cluster, PLAYER, 100, max_gold=2500)

        solo_death = solo_quality.deaths[0]
        cluster_death = cluster_quality.deaths[0]
        assert solo_death.is_teamfight is False
        assert cluster_death.is_teamfight is True
        assert cluster_death.nearby_deaths == 3
        assert solo_death.penalty == pytest.approx(15.5)
        assert cluster_death.penalty == pytest.approx(7.0)
        assert solo_quality.death_score < cluster_quality.death_score

    def test_penalty_floor(self):
        kills = [
            _kill(1000, 6, PLAYER, _at(1.0)),
            _kill(1000, 2, 7, _at(1.0)),
            _kill(1000, 3, 8, _at(1.0)),
            _kill(1000, 4, 9, _at(1.0)),
        ]
        quality = analyze_kill_death_quality(kills, PLAYER, 100, max_gold=2500)
        assert quality.deaths[0].penalty == 2.0

    def test_no_deaths_scores_100(self):
        quality = analyze_kill_death_quality([], PLAYER, 100)
        assert quality.death_score == 100.0
        assert quality.kill_score == 50.0


class TestKillGrading:
    def test_rich_target_at_home_worth_more(self):
        kills = [
            _kill(1000, PLAYER, 6, _at(0.2), victim_gold=2000),
            _kill(90_000, PLAYER, 7, _at(0.8), victim_gold=0),
        ]

        quality = analyze_kill_death_quality(kills, PLAYER, 100, max_gold=2500)

        defensive, aggressive = quality.kills
        assert defensive.value == pytest.approx(4 + 4 * 0.8 + 2 * 0.8)
        assert aggressive.value == pytest.approx(4 + 2 * 0.2)
        assert quality.kill_score == pytest.approx(50 + defensive.value + aggressive.value)
        assert quality.solo_kills == 2

    def test_kill_score_capped(self):
        kills = [_kill(i * 60_000, PLAYER, 6, _at(0.0), victim_gold=2500) for i in range(10)]
        quality = analyze_kill_death_quality(kills, PLAYER, 100, max_gold=2500)
        assert quality.kill_score == 100.0


class TestTimelineAnalysis:
    def test_without_timeline(self):
        assert analyze_participant_events(None, PLAYER, 100) is None

    def test_gold_reference_from_timeline(self, timeline_factory):
        timeline = timeline_factory(
            [
                {
                    "timestamp": 60_000,
                    "participantFrames": {
                        "1": {"currentGold": 5000, "level": 9},
                        "6": {"currentGold": 100, "level": 9},
                    },
                    "events": [
                        {
                            "type": "CHAMPION_KILL",
                            "timestamp": 59_000,
                            "killerId": 6,
                            "victimId": 1,
                            "position": {"x": 3500, "y": 3500},
                        }
                    ],
                }
            ]
        )

        events = extract_kill_events(timeline)
        quality = analyze_participant_events(timeline, PLAYER, 100)

        assert events[0].victim_gold == 5000
        assert events[0].victim_level == 9
        assert quality is not None
        # 5000 gold is the richest anyone got, so the gold penalty is full
        assert quality.deaths[0].gold_penalty == 1.0
