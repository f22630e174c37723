"""Tests for compose."""

from minirex import compose


class TestCompose:
    def test_no_functions_is_identity(self):
        marker = object()
        assert compose()(marker) is marker

    def test_single_function_returned_unchanged(self):
        def f(x):
            return x * 2

        assert compose(f) is f

    def test_composes_right_to_left(self):
        composed = compose(lambda x: "f(" + x + ")", lambda x: "g(" + x + ")", lambda x: "h(" + x + ")")
        assert composed("x") == "f(g(h(x)))"

    def test_rightmost_receives_all_arguments(self):
        def last(a, b, *, c):
            return a + b + c

        composed = compose(str, lambda total: total * 10, last)
        assert composed(1, 2, c=3) == "60"

    def test_each_outer_function_receives_single_value(self):
        calls = []

        def outer(*args):
            calls.append(args)
            return args

        composed = compose(outer, lambda *args: sum(args))
        composed(1, 2, 3)
        assert calls == [(6,)]

    def test_wrapping_layers_first_is_outermost(self):
        order = []

        def layer(name):
            def wrap(next_dispatch):
                def dispatch(action):
                    order.append(name)
                    return next_dispatch(action)
                return dispatch
            return wrap

        def base(action):
            order.append("base")
            return action

        dispatch = compose(layer("outer"), layer("inner"))(base)
        action = {"type": "X"}
        assert dispatch(action) is action
        assert order == ["outer", "inner", "base"]
