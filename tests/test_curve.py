import pytest

from dremscape.curve import (
    CONTROL_MAX,
    CONTROL_MIN,
    DEFAULT_CURVE_X,
    DEFAULT_CURVE_Y,
    CurveEditor,
    eval_bezier_y,
    fade_in,
    solve_bezier_t,
)


@pytest.mark.parametrize("cx", [0.05, 0.25, 0.5, 0.75, 0.95])
@pytest.mark.parametrize("x", [0.0, 0.1, 0.33, 0.5, 0.8, 1.0])
def test_solve_then_eval_with_same_control_round_trips(cx, x):
    # x(t) and y(t) share the same form, so y with cy == cx reproduces x.
    assert eval_bezier_y(cx, solve_bezier_t(cx, x)) == pytest.approx(x, abs=1e-6)


@pytest.mark.parametrize("cx,cy", [(0.25, 0.75), (0.05, 0.95), (0.9, 0.1), (0.5, 0.5)])
def test_fade_in_endpoints(cx, cy):
    assert fade_in(cx, cy, 0.0) == pytest.approx(0.0, abs=1e-9)
    assert fade_in(cx, cy, 1.0) == pytest.approx(1.0, abs=1e-6)


def test_solve_bezier_t_stays_in_unit_range():
    for cx in (0.05, 0.3, 0.5, 0.7, 0.95):
        for i in range(21):
            t = solve_bezier_t(cx, i / 20)
            assert 0.0 <= t <= 1.0


def test_default_fade_in_is_monotonic():
    values = [fade_in(DEFAULT_CURVE_X, DEFAULT_CURVE_Y, i / 100) for i in range(101)]
    assert all(b >= a for a, b in zip(values, values[1:]))


def test_linear_control_point_gives_linear_fade():
    for x in (0.2, 0.4, 0.9):
        assert fade_in(0.5, 0.5, x) == pytest.approx(x, abs=1e-9)


def test_editor_defaults():
    editor = CurveEditor()
    assert (editor.cx, editor.cy) == (0.25, 0.75)
    assert editor.dragging is False


def test_set_control_point_clamps():
    editor = CurveEditor()
    editor.set_control_point(-1.0, 2.0)
    assert (editor.cx, editor.cy) == (CONTROL_MIN, CONTROL_MAX)
    editor.set_control_point(0.4, 0.6)
    assert (editor.cx, editor.cy) == (0.4, 0.6)


def test_screen_mapping_round_trip():
    editor = CurveEditor(100, 80)
    for x, y in [(0.0, 0.0), (1.0, 1.0), (0.3, 0.7)]:
        sx, sy = editor.to_screen(x, y)
        bx, by = editor.from_screen(sx, sy)
        assert bx == pytest.approx(x)
        assert by == pytest.approx(y)


def test_screen_origin_is_bottom_left_of_inset_area():
    editor = CurveEditor(100, 80)
    assert editor.to_screen(0.0, 0.0) == pytest.approx((4.0, 76.0))
    assert editor.to_screen(1.0, 1.0) == pytest.approx((96.0, 4.0))


def test_too_small_editor_rejected():
    with pytest.raises(ValueError):
        CurveEditor(8, 40)


def test_curve_points_cover_both_ends():
    editor = CurveEditor()
    points = editor.curve_points(30)
    assert len(points) == 31
    assert points[0][0] == 0.0 and points[-1][0] == 1.0
    assert points[0][1] == pytest.approx(0.0)
    assert points[-1][1] == pytest.approx(1.0)
    for _, fin, fout in points:
        assert fin + fout == pytest.approx(1.0)


def test_curve_points_rejects_zero_segments():
    with pytest.raises(ValueError):
        CurveEditor().curve_points(0)


def test_drag_moves_control_point_and_notifies():
    changes = []
    editor = CurveEditor(60, 60, on_curve_changed=lambda cx, cy: changes.append((cx, cy)))
    hx, hy = editor.to_screen(editor.cx, editor.cy)
    assert editor.mouse_down(hx + 2, hy - 2) is True
    editor.mouse_drag(0.0, 0.0)
    assert (editor.cx, editor.cy) == (CONTROL_MIN, CONTROL_MAX)
    assert changes == [(CONTROL_MIN, CONTROL_MAX)]
    editor.mouse_up()
    assert editor.dragging is False


def test_press_away_from_handle_does_not_drag():
    changes = []
    editor = CurveEditor(60, 60, on_curve_changed=lambda cx, cy: changes.append((cx, cy)))
    assert editor.mouse_down(55.0, 55.0) is False
    editor.mouse_drag(10.0, 10.0)
    assert (editor.cx, editor.cy) == (DEFAULT_CURVE_X, DEFAULT_CURVE_Y)
    assert changes == []


def test_double_click_resets_and_notifies():
    changes = []
    editor = CurveEditor(on_curve_changed=lambda cx, cy: changes.append((cx, cy)))
    editor.set_control_point(0.9, 0.1)
    editor.double_click()
    assert (editor.cx, editor.cy) == (DEFAULT_CURVE_X, DEFAULT_CURVE_Y)
    assert changes == [(DEFAULT_CURVE_X, DEFAULT_CURVE_Y)]


def test_eval_y_follows_control_point():
    editor = CurveEditor()
    editor.set_control_point(0.5, 0.5)
    assert editor.eval_y(0.3) == pytest.approx(0.3)