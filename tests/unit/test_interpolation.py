"""Tests for placeholder interpolation."""

from hypothesis import given, strategies as st

from interpreter import Environment, find_tokens, interpolate, stringify


def test_basic_substitution():
    """Bound tokens are replaced."""
    env = Environment({"user.name": "John"})
    assert interpolate("Hello {{user.name}}", env) == "Hello John"


def test_unbound_token_unchanged():
    """Unbound tokens stay verbatim."""
    assert interpolate("Hello {{user.name}}", Environment({})) == "Hello {{user.name}}"


def test_null_binding_unchanged():
    """A token bound to null stays verbatim."""
    env = Environment({"user.name": None})
    assert interpolate("Hello {{user.name}}", env) == "Hello {{user.name}}"


def test_whitespace_in_token():
    env = Environment({"user.name": "John"})
    assert interpolate("Hi {{ user.name }}!", env) == "Hi John!"


def test_multiple_tokens():
    env = Environment({"a": "1", "b": "2"})
    assert interpolate("{{a}}+{{b}}={{c}}", env) == "1+2={{c}}"


def test_non_recursive():
    """Substituted values are not scanned again."""
    env = Environment({"a": "{{b}}", "b": "secret"})
    assert interpolate("value: {{a}}", env) == "value: {{b}}"


def test_missing_callback():
    env = Environment({"a": "x"})
    missing = []
    interpolate("{{a}} {{b}} {{c}}", env, on_missing=missing.append)
    assert missing == ["b", "c"]


def test_stringify():
    """Scalars render the way templates expect."""
    assert stringify(True) == "true"
    assert stringify(False) == "false"
    assert stringify(3) == "3"
    assert stringify(3.0) == "3"
    assert stringify(2.5) == "2.5"
    assert stringify(["a", 1]) == '["a",1]'
    assert stringify({"b": 1, "a": 2}) == '{"a":2,"b":1}'


def test_find_tokens():
    assert find_tokens("{{a}} and {{ b.c }}") == ["a", "b.c"]
    assert find_tokens("no tokens") == []


@given(st.text(alphabet=st.characters(exclude_characters="{}"), max_size=50))
def test_text_without_tokens_unchanged(text):
    """Property test: text without placeholders passes through."""
    assert interpolate(text, Environment({"a": "b"})) == text


@given(st.from_regex(r"[a-z]{1,8}", fullmatch=True), st.text(alphabet=st.characters(exclude_characters="{}")))
def test_bound_token_replaced(key, value):
    """Property test: a bound token is replaced by its value."""
    assert interpolate("<{{%s}}>" % key, Environment({key: value})) == f"<{value}>"
