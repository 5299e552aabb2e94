"""Tests for configuration defaults and policy validation."""

from __future__ import annotations

import pytest

from lyric_palette import config


class TestLoadPolicy:
    def test_explicit_name(self):
        assert config.load_policy("hue") == "hue"

    def test_normalizes_case_and_whitespace(self):
        assert config.load_policy("  Lightness ") == "lightness"

    def test_none_uses_environment_setting(self, monkeypatch):
        monkeypatch.setattr(config, "PALETTE_POLICY", "hue")
        assert config.load_policy() == "hue"

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Available: hue, lightness"):
            config.load_policy("rainbow")


class TestDefaults:
    def test_fallback_color(self):
        assert config.FALLBACK_COLOR == (255, 200, 200)

    def test_default_palette(self):
        assert config.DEFAULT_PALETTE == ((220, 180, 200), (200, 160, 180), (240, 200, 220))

    def test_filter_limits(self):
        assert (config.ALPHA_THRESHOLD, config.MIN_BRIGHTNESS, config.MAX_BRIGHTNESS) == (128, 10, 250)

    def test_image_formats_are_lowercase_suffixes(self):
        assert all(ext.startswith(".") and ext == ext.lower() for ext in config.SUPPORTED_IMAGE_FORMATS)
