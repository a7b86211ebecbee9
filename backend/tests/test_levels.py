import pytest

from app.services.rewards.levels import calculate_level, get_level_progress, xp_for_level


@pytest.mark.parametrize("xp,level", [
    (0, 1),
    (99, 1),
    (100, 2),
    (399, 2),
    (400, 3),
    (900, 4),
    (-50, 1),
])
def test_calculate_level(xp, level):
    assert calculate_level(xp) == level


def test_xp_for_level_is_inverse_of_level_curve():
    for level in range(1, 10):
        assert calculate_level(xp_for_level(level)) == level
        assert calculate_level(xp_for_level(level) - 1) == max(1, level - 1)


def test_level_progress_midway():
    progress = get_level_progress(250)
    assert progress == {
        "current_level": 2,
        "current_level_xp": 100,
        "next_level_xp": 400,
        "progress_xp": 150,
        "progress_percent": 50.0
    }


def test_level_progress_at_boundary_starts_at_zero():
    progress = get_level_progress(400)
    assert progress["current_level"] == 3
    assert progress["progress_xp"] == 0
    assert progress["progress_percent"] == 0.0
