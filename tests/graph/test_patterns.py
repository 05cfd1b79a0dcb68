"""Tests for glob symbol patterns."""

from callcontract.graph.patterns import compile_glob, contains, glob_matches, in_scope


class TestGlobMatches:
    def test_star_matches_any_run(self) -> None:
        assert glob_matches("*#save().", "scip-php app App/Repo/OrderRepository#save().")
        assert not glob_matches("*#save().", "scip-php app App/Repo/OrderRepository#saveAll().")

    def test_question_mark_matches_single_character(self) -> None:
        assert glob_matches("Order?", "Order1")
        assert not glob_matches("Order?", "Order12")

    def test_regex_metacharacters_are_literal(self) -> None:
        assert glob_matches("App/Order#getId().", "App/Order#getId().")
        assert not glob_matches("App/Order#getId().", "App/Order#getIdx)")

    def test_anchored_at_both_ends(self) -> None:
        assert not glob_matches("Order", "App/Order#")

    def test_none_never_matches(self) -> None:
        assert not glob_matches("*", None)
        assert not contains("a", None)

    def test_compiled_patterns_are_cached(self) -> None:
        assert compile_glob("*#email.") is compile_glob("*#email.")


class TestInScope:
    def test_whole_class_segment_only(self) -> None:
        fragment = "OrderProcessor#process()"

        assert in_scope(fragment, "scip-php app App/Service/OrderProcessor#process().")
        assert in_scope(fragment, "OrderProcessor#process()")
        assert not in_scope(fragment, "scip-php app App/Service/StandardOrderProcessor#process().")

    def test_method_must_end_the_segment(self) -> None:
        assert in_scope("App/Order#save()", "p App/Order#save().local$order@3")
        assert not in_scope("App/Order#save()", "p App/Order#save()x")

    def test_none_is_out_of_scope(self) -> None:
        assert not in_scope("App/Order#save()", None)
