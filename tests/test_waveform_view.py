import pytest

from core.waveform_view import (BAR_WIDTH, DIVIDER_WIDTH, GUTTER, DrawLine,
                                WaveformView)


class DictTheme:
    """Theme backed by a plain dict; roles missing from it are not found."""

    def __init__(self, colors):
        self.colors = colors
        self.lookups = []

    def get_foreground(self):
        return self.colors["foreground"]

    def lookup_color(self, role):
        self.lookups.append(role)
        if role in self.colors:
            return True, self.colors[role]
        return False, None


@pytest.fixture
def theme():
    return DictTheme({"foreground": "fg", "dimmed": "dim", "accent": "acc"})


def make_view(peaks, position=0.0):
    view = WaveformView()
    view.peaks = peaks
    view.position = position
    return view


def bars(lines):
    return lines[1:]


def test_gutter_constant():
    assert GUTTER == 4


def test_scenario_first_bar_at_pointer_origin(theme):
    view = make_view([0.5] * 10, position=0.5)
    assert view.pointer_origin(100) == 30

    lines = view.render(100, 50, theme)
    assert bars(lines)[0].x0 == 30
    assert len(bars(lines)) == 10


def test_divider_spans_full_height_at_center(theme):
    view = make_view([0.1, 0.2])
    divider = view.render(100, 40, theme)[0]

    assert divider == DrawLine(50, 20 - 40, 50, 20 + 40, "acc", DIVIDER_WIDTH)


def test_divider_falls_back_to_foreground(theme):
    del theme.colors["accent"]
    divider = make_view([]).render(100, 40, theme)[0]
    assert divider.color == "fg"


def test_bar_geometry(theme):
    view = make_view([0.25])
    bar = bars(view.render(100, 40, theme))[0]

    assert bar == DrawLine(50, 20 + 0.25 * 40, 50, 20 - 0.25 * 40, "fg", BAR_WIDTH)


def test_bar_at_center_uses_left_color(theme):
    # position 0: first bar sits exactly on the divider
    view = make_view([1.0, 1.0, 1.0])
    lines = bars(view.render(100, 40, theme))

    assert lines[0].x0 == 50
    assert lines[0].color == "fg"
    assert [line.color for line in lines[1:]] == ["dim", "dim"]


def test_left_and_right_zones(theme):
    view = make_view([0.5] * 10, position=0.5)
    lines = bars(view.render(100, 50, theme))

    for line in lines:
        expected = "dim" if line.x0 > 50 else "fg"
        assert line.color == expected


def test_missing_dimmed_color_falls_back_to_foreground(theme):
    del theme.colors["dimmed"]
    lines = bars(make_view([0.5, 0.5]).render(100, 40, theme))
    assert [line.color for line in lines] == ["fg", "fg"]


def test_colors_looked_up_once_per_render(theme):
    view = make_view([0.5] * 50, position=0.3)
    view.render(200, 40, theme)
    assert sorted(theme.lookups) == ["accent", "dimmed"]


def test_offscreen_left_peaks_are_skipped(theme):
    # pointer origin = 10 - 0.5 * 20 * 4 = -30 -> skip ceil(30 / 4) = 8 bars
    peaks = [i / 100 for i in range(20)]
    view = make_view(peaks, position=0.5)
    lines = bars(view.render(20, 40, theme))

    assert lines[0].x0 == 2
    assert lines[0].y0 == pytest.approx(20 + 0.08 * 40)
    assert all(line.x0 >= 0 for line in lines)


def test_skip_when_pointer_is_multiple_of_gutter(theme):
    # pointer origin = 4 - 1.0 * 6 * 4 = -20 -> exactly five bars off-screen
    view = make_view([0.1] * 5 + [0.9], position=1.0)
    lines = bars(view.render(8, 40, theme))

    assert len(lines) == 1
    assert lines[0].x0 == 0
    assert lines[0].y0 == pytest.approx(20 + 0.9 * 40)


def test_peaks_past_right_edge_not_drawn(theme):
    view = make_view([0.5] * 100, position=0.0)
    lines = bars(view.render(100, 40, theme))

    # bars at 50, 54, ..., 98
    assert len(lines) == 13
    assert lines[-1].x0 == 98
    assert all(line.x0 <= 100 for line in lines)


def test_bar_exactly_at_right_edge_is_drawn(theme):
    view = make_view([0.5] * 20, position=0.0)
    lines = bars(view.render(96, 40, theme))
    assert lines[-1].x0 == 96


def test_render_is_reproducible(theme):
    view = make_view([0.1, 0.7, 0.3, 0.9], position=0.25)
    assert view.render(64, 32, theme) == view.render(64, 32, theme)


def test_empty_peaks_draw_only_divider(theme):
    lines = make_view([], position=0.7).render(100, 40, theme)
    assert len(lines) == 1


def test_peaks_setter_copies_and_requests_redraw():
    view = WaveformView()
    redraws = []
    view.on_redraw_requested(lambda: redraws.append(True))

    source = [0.1, 0.2]
    view.peaks = source
    source.append(0.3)

    assert view.peaks == (0.1, 0.2)
    assert view.peak_count == 2
    assert redraws == [True]


def test_position_setter_notifies_on_every_set():
    view = WaveformView()
    redraws = []
    positions = []
    view.on_redraw_requested(lambda: redraws.append(True))
    view.on_position_changed(positions.append)

    view.position = 0.4
    view.position = 0.4

    assert positions == [0.4, 0.4]
    assert len(redraws) == 2


def test_unsubscribe_position_observer():
    view = WaveformView()
    positions = []
    unsubscribe = view.on_position_changed(positions.append)
    unsubscribe()

    view.position = 0.9
    assert positions == []


def test_clear_drops_peaks():
    view = make_view([0.5, 0.5])
    view.clear()
    assert view.peaks == ()
