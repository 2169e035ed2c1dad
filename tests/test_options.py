"""Tests for the generic option applicator."""

from pagewright.services.options import apply_options, new_view_model


class _Settings:
    def __init__(self):
        self.name = ""
        self.tags = []


def _set_name(value):
    def option(settings):
        settings.name = value
    return option


def _add_tag(value):
    def option(settings):
        settings.tags.append(value)
    return option


class TestApplyOptions:
    def test_returns_the_same_instance(self):
        target = _Settings()
        assert apply_options(target, []) is target

    def test_options_run_in_order_last_scalar_wins(self):
        target = apply_options(_Settings(), [_set_name("first"), _set_name("second")])
        assert target.name == "second"

    def test_append_options_accumulate_in_call_order(self):
        target = apply_options(_Settings(), [_add_tag("a"), _add_tag("b"), _add_tag("c")])
        assert target.tags == ["a", "b", "c"]

    def test_accepts_any_iterable(self):
        target = apply_options(_Settings(), (opt for opt in [_set_name("gen")]))
        assert target.name == "gen"


class TestNewViewModel:
    def test_starts_from_fresh_instance_each_time(self):
        options = [_add_tag("x")]
        first = new_view_model(_Settings, *options)
        second = new_view_model(_Settings, *options)
        assert first is not second
        assert first.tags == ["x"]
        assert second.tags == ["x"]

    def test_no_options_returns_zero_value(self):
        settings = new_view_model(_Settings)
        assert settings.name == ""
        assert settings.tags == []

    def test_works_with_builtin_factories(self):
        data = new_view_model(dict, lambda d: d.update(debug=True))
        assert data == {"debug": True}
