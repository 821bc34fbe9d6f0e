import numpy as np
import pytest

from pymandel.escape import escape_time, escape_time_grid, shade, to_rgb8


def test_origin_never_escapes():
    assert escape_time(0.0, 0.0, 40, 2.0) == 40


def test_escape_radius_is_strict():
    # |z1| == 2.0 is not beyond the radius, the next update is
    assert escape_time(2.0, 0.0, 40, 2.0) == 1
    assert escape_time(2.1, 0.0, 40, 2.0) == 0


@pytest.mark.parametrize(
    "c, expected",
    [
        ((0.5, 0.0), 4),
        ((1.0, 0.0), 2),
        ((-2.0, 0.0), 40),
        ((-1.0, 0.0), 40),
        ((0.0, 3.0), 0),
    ],
)
def test_known_points(c, expected):
    assert escape_time(c[0], c[1], 40, 2.0) == expected


def test_result_bounds():
    for re in np.linspace(-2.5, 1.5, 17):
        for im in np.linspace(-1.5, 1.5, 13):
            i = escape_time(re, im, 25, 2.0)
            assert 0 <= i <= 25


def test_points_outside_radius_escape_immediately():
    assert escape_time(3.0, 0.0, 100, 2.0) == 0
    assert escape_time(-1.5, -1.5, 100, 2.0) == 0


def test_monotone_in_max_iterations():
    points = [(-0.75, 0.1), (0.3, 0.5), (-0.1, 0.65), (0.26, 0.0), (-1.25, 0.02)]
    for re, im in points:
        previous = -1
        for cap in (5, 10, 20, 50, 100):
            i = escape_time(re, im, cap, 2.0)
            assert i >= previous
            previous = i


def test_grid_matches_scalar():
    re = np.linspace(-2.2, 0.8, 23)
    im = np.linspace(-1.3, 1.3, 19)
    c_re, c_im = np.meshgrid(re, im)

    grid = escape_time_grid(c_re, c_im, 30, 2.0)

    assert grid.shape == c_re.shape
    assert grid.dtype == np.int32
    for (y, x), value in np.ndenumerate(grid):
        assert value == escape_time(c_re[y, x], c_im[y, x], 30, 2.0)


def test_grid_broadcasts_scalars():
    out = escape_time_grid(np.array([0.0, 2.0, 2.1]), 0.0, 40, 2.0)
    assert out.tolist() == [40, 1, 0]


def test_grid_respects_escape_radius():
    loose = escape_time_grid(np.array([1.0]), np.array([0.0]), 40, 10.0)
    assert loose.tolist() == [3]  # 1, 2, 5, 26


def test_shade_ramp():
    rgb = shade(np.array([0, 20, 40]), 40)

    assert rgb.shape == (3, 3)
    assert rgb[0] == pytest.approx([0.1, 0.06, 0.1])
    assert rgb[1] == pytest.approx([0.5, 0.3, 0.1])
    # in-set pixels share the dim end with i = 0
    assert rgb[2] == pytest.approx(rgb[0])


def test_shade_is_monotone_for_escaped_points():
    levels = shade(np.arange(40), 40)[:, 0]
    assert np.all(np.diff(levels) > 0)


def test_to_rgb8():
    out = to_rgb8(np.array([[0.0, 1.0, 0.2], [1.5, -0.1, 0.0]]))
    assert out.dtype == np.uint8
    assert out.tolist() == [[0, 255, 51], [255, 0, 0]]
