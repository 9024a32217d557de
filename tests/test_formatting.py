"""Tests for message templating, description sanitizing and phone formatting."""

import pytest

from jobdesk.services.formatting import (
    format_phone_for_whatsapp,
    render_template,
    sanitize_task_description,
)


class TestRenderTemplate:

    def test_replaces_every_occurrence(self):
        out = render_template("{{name}} and {{name}} again", {"name": "Asha"})
        assert out == "Asha and Asha again"

    def test_missing_variables_render_empty(self):
        assert render_template("Hi {{name}}, {{missing}}!", {"name": "Asha"}) == "Hi Asha, !"

    def test_extra_variables_are_ignored(self):
        assert render_template("Hi", {"name": "Asha"}) == "Hi"

    def test_keys_are_case_sensitive(self):
        assert render_template("{{Name}}", {"name": "Asha"}) == ""

    def test_regex_metacharacters_in_keys_are_literal(self):
        variables = {"a.b": "dot", "a+b": "plus"}
        assert render_template("{{a.b}} {{a+b}} {{axb}}", variables) == "dot plus "

    def test_values_are_not_reinterpreted(self):
        """A value that looks like a placeholder is inserted verbatim."""
        out = render_template("{{a}} {{b}}", {"a": "{{b}}", "b": "x"})
        assert out == "{{b}} x"

    def test_unclosed_braces_stay_literal(self):
        out = render_template("Use {{ to mark, hi {{name}}", {"name": "Ann"})
        assert out == "Use {{ to mark, hi Ann"

    def test_surrounding_braces_are_kept(self):
        assert render_template("{{{name}}}", {"name": "Ann"}) == "{Ann}"


class TestSanitizeTaskDescription:

    def test_none_and_empty(self):
        assert sanitize_task_description(None) == ""
        assert sanitize_task_description("") == ""

    def test_strips_tags(self):
        assert sanitize_task_description("<p>Fix <b>cable</b></p>") == "Fix cable"

    def test_strips_markup_and_collapses_whitespace(self):
        text = "<p>Clean   the\n\n<b>grill</b></p>  "
        assert sanitize_task_description(text) == "Clean the grill"

    def test_exactly_200_characters_is_untouched(self):
        text = "x" * 200
        assert sanitize_task_description(text) == text

    def test_longer_text_is_truncated_with_ellipsis(self):
        out = sanitize_task_description("y" * 250)
        assert out == "y" * 200 + "…"
        assert len(out) == 201


class TestFormatPhone:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("98765 43210", "919876543210"),
            ("(987) 654-3210", "919876543210"),
            ("+44 7700 900123", "447700900123"),
            ("+14155551234", "14155551234"),
            ("919876543210", "919876543210"),
            ("12345", "9112345"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert format_phone_for_whatsapp(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "n/a"])
    def test_unusable_numbers(self, raw):
        assert format_phone_for_whatsapp(raw) is None

    def test_custom_country_code(self):
        assert format_phone_for_whatsapp("7700900123", country_code="44") == "447700900123"
