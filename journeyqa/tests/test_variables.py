"""Tests for variable resolution and placeholder substitution."""
import pytest

from journeyqa.src.utils.variables import (
    MissingEnvironmentVariableError,
    SensitiveVariableError,
    UndefinedVariableError,
    is_sensitive_env_name,
    resolve_variables,
    substitute_variables,
)


class TestResolveVariables:
    """Merging declared variables with overrides."""

    def test_overrides_win(self):
        resolved = resolve_variables({"user": "alice", "env": "dev"}, {"user": "bob"})
        assert resolved == {"user": "bob", "env": "dev"}

    def test_handles_missing_maps(self):
        assert resolve_variables() == {}
        assert resolve_variables(None, {"a": "1"}) == {"a": "1"}

    def test_expands_env_reference(self, monkeypatch):
        monkeypatch.setenv("QA_USERNAME", "tester")
        assert resolve_variables({"user": "{{env:QA_USERNAME}}"}) == {"user": "tester"}

    def test_partial_env_reference_is_literal(self, monkeypatch):
        monkeypatch.setenv("QA_USERNAME", "tester")
        value = "prefix {{env:QA_USERNAME}}"
        assert resolve_variables({"user": value}) == {"user": value}

    def test_missing_env_var_names_both(self, monkeypatch):
        monkeypatch.delenv("QA_MISSING_THING", raising=False)
        with pytest.raises(MissingEnvironmentVariableError) as excinfo:
            resolve_variables({"thing": "{{env:QA_MISSING_THING}}"})
        message = str(excinfo.value)
        assert '"QA_MISSING_THING"' in message
        assert 'variable "thing"' in message

    @pytest.mark.parametrize("name", ["OPENAI_API_KEY", "GITHUB_TOKEN", "db_password", "MY_SECRET"])
    def test_sensitive_env_names_are_refused(self, monkeypatch, name):
        monkeypatch.setenv(name, "hunter2")
        with pytest.raises(SensitiveVariableError) as excinfo:
            resolve_variables({"x": "{{env:%s}}" % name})
        assert "sensitive environment variable" in str(excinfo.value)
        assert "hunter2" not in str(excinfo.value)


def test_is_sensitive_env_name_is_case_insensitive():
    assert is_sensitive_env_name("private_cert")
    assert not is_sensitive_env_name("BASE_URL")


class TestSubstituteVariables:
    def test_replaces_every_occurrence(self):
        text = "Log in as {{user}} then greet {{user}} at {{site}}"
        result = substitute_variables(text, {"user": "amy", "site": "home"})
        assert result == "Log in as amy then greet amy at home"

    def test_text_without_placeholders_is_unchanged(self):
        assert substitute_variables("Click Login", {}) == "Click Login"

    def test_undefined_variable(self):
        with pytest.raises(UndefinedVariableError) as excinfo:
            substitute_variables("Type {{missing}}", {"other": "x"})
        assert '"{{missing}}"' in str(excinfo.value)
        assert "Type {{missing}}" in str(excinfo.value)

    def test_env_syntax_is_not_a_placeholder(self):
        assert substitute_variables("{{env:HOME}}", {}) == "{{env:HOME}}"
