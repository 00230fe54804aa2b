import pytest

from lox_interpreter.environment import Environment
from lox_interpreter.errors import LoxRuntimeError, ResolutionMismatchError
from lox_interpreter.tokens import Token, TokenType


def name(lexeme, line=1):
    return Token(TokenType.IDENTIFIER, lexeme, None, line)


def test_define_and_get():
    env = Environment()
    env.define("a", 1.0)
    assert env.get(name("a")) == 1.0


def test_redefine_in_same_scope_overwrites():
    env = Environment()
    env.define("a", 1.0)
    env.define("a", "two")
    assert env.get(name("a")) == "two"


def test_get_walks_outward_never_inward():
    outer = Environment()
    inner = Environment(outer)
    outer.define("a", "outer")
    inner.define("b", "inner")
    assert inner.get(name("a")) == "outer"
    with pytest.raises(LoxRuntimeError):
        outer.get(name("b"))


def test_get_undefined_carries_token():
    token = name("missing", line=7)
    with pytest.raises(LoxRuntimeError) as info:
        Environment(Environment()).get(token)
    assert info.value.token is token
    assert info.value.message == "Undefined variable 'missing'."


def test_assign_mutates_nearest_binding():
    outer = Environment()
    middle = Environment(outer)
    inner = Environment(middle)
    outer.define("a", 1.0)
    middle.define("a", 2.0)
    inner.assign(name("a"), 3.0)
    assert middle.values["a"] == 3.0
    assert outer.values["a"] == 1.0
    assert "a" not in inner.values


def test_assign_never_creates_a_global():
    globals_ = Environment()
    with pytest.raises(LoxRuntimeError):
        Environment(globals_).assign(name("x"), 1.0)
    assert "x" not in globals_.values


def test_get_at_and_assign_at_skip_shadowing_frames():
    outer = Environment()
    inner = Environment(outer)
    outer.define("a", "outer")
    inner.define("a", "inner")
    assert inner.get_at(0, name("a")) == "inner"
    assert inner.get_at(1, name("a")) == "outer"

    inner.assign_at(1, name("a"), "changed")
    assert outer.values["a"] == "changed"
    assert inner.values["a"] == "inner"


def test_ancestor_past_the_outermost_frame_is_a_mismatch():
    env = Environment(Environment())
    with pytest.raises(ResolutionMismatchError) as info:
        env.get_at(2, name("a"))
    assert info.value.distance == 2
    with pytest.raises(ResolutionMismatchError):
        env.assign_at(5, name("a"), 1.0)


def test_get_at_before_definition_is_undefined_variable():
    env = Environment(Environment())
    with pytest.raises(LoxRuntimeError):
        env.get_at(1, name("later"))


def test_shared_frame_is_visible_to_every_child():
    shared = Environment()
    shared.define("n", 0.0)
    first, second = Environment(shared), Environment(shared)
    first.assign_at(1, name("n"), 5.0)
    assert second.get_at(1, name("n")) == 5.0
