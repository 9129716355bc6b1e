"""Tests for framebuffer rendering helpers."""

import numpy as np
import pytest
from chip8core import chip8_display_to_rgb, create_color_scheme, hex_to_rgb


def test_hex_to_rgb():
    assert hex_to_rgb(0x00FFEC) == (0, 255, 236)
    assert hex_to_rgb(0xD600FF) == (214, 0, 255)


def test_hex_to_rgb_rejects_out_of_range():
    with pytest.raises(ValueError):
        hex_to_rgb(0x1000000)


def test_display_to_rgb_colors_and_orientation():
    display = np.zeros((64, 32), dtype=bool)
    display[5, 2] = True

    frame = chip8_display_to_rgb(display, scale=1, on_color=(1, 2, 3), off_color=(9, 9, 9))

    assert frame.shape == (32, 64, 3)
    assert tuple(frame[2, 5]) == (1, 2, 3)
    assert tuple(frame[0, 0]) == (9, 9, 9)


def test_display_to_rgb_scales():
    display = np.zeros((64, 32), dtype=bool)
    display[0, 0] = True

    frame = chip8_display_to_rgb(display, scale=4)

    assert frame.shape == (128, 256, 3)
    assert (frame[:4, :4] == (0, 255, 0)).all()
    assert (frame[4, 4] == (0, 0, 0)).all()


def test_display_to_rgb_rejects_wrong_shape():
    with pytest.raises(ValueError):
        chip8_display_to_rgb(np.zeros((32, 64), dtype=bool))


@pytest.mark.parametrize("scheme", ["matrix", "neon", "chill", "amber", "white", "blue", "retro"])
def test_color_schemes(scheme):
    on_color, off_color = create_color_scheme(scheme)
    assert len(on_color) == 3 and len(off_color) == 3
    assert on_color != off_color


def test_unknown_color_scheme():
    with pytest.raises(ValueError):
        create_color_scheme("sepia")
