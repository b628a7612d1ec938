"""Tests for the Composition dependency model."""

import pytest

from deporder import (
    ROOT_VERTEX_NAME,
    Composition,
    CycleError,
    Dependencies,
    ReferentialIntegrityError,
    ReservedNameError,
    UnknownAppError,
    UnknownDistributionError,
)

DISTR = "prd"


def hard(*names: str) -> Dependencies:
    return Dependencies(hard_dependencies=frozenset(names))


def soft(*names: str) -> Dependencies:
    return Dependencies(soft_dependencies=frozenset(names))


def assert_after(order: list[str], a: str, b: str) -> None:
    """Assert that a is ordered after b."""
    assert order.index(a) > order.index(b), f"{a} is ordered before {b}: {order}"


def make_composition(apps: dict[str, Dependencies | None], distribution: str = DISTR) -> Composition:
    comp = Composition()
    for name, deps in apps.items():
        comp.add(distribution, name, deps)
    return comp


@pytest.fixture
def simple_comp() -> Composition:
    # a -> c, b -> a
    return make_composition({"b": hard("a"), "c": None, "a": hard("c")})


@pytest.fixture
def mixed_comp() -> Composition:
    """
    m  -> m1
    m1 -> a, b
    b  ~> c (soft)
    c  -> d
    """
    return make_composition(
        {
            "m": hard("m1"),
            "m1": hard("a", "b"),
            "a": None,
            "b": soft("c"),
            "c": hard("d"),
            "d": None,
        },
    )


class TestAdd:
    def test_add_creates_distribution(self) -> None:
        comp = Composition()
        comp.add(DISTR, "a")
        assert comp.distribution == {DISTR: {"a": Dependencies()}}
        assert not comp.is_empty()

    def test_add_existing_app_is_noop(self) -> None:
        comp = Composition()
        comp.add(DISTR, "a", hard("b"))
        comp.add(DISTR, "a", soft("c"))
        assert comp.distribution[DISTR]["a"] == hard("b")

    def test_same_app_in_different_distributions(self) -> None:
        comp = Composition()
        comp.add("prd", "a", hard("b"))
        comp.add("stg", "a")
        assert comp.distribution["prd"]["a"] == hard("b")
        assert comp.distribution["stg"]["a"] == Dependencies()
        assert comp.distributions == ["prd", "stg"]

    def test_reserved_name_is_rejected(self) -> None:
        comp = Composition()
        with pytest.raises(ReservedNameError):
            comp.add(DISTR, ROOT_VERTEX_NAME)
        assert comp.is_empty()

    def test_empty_composition(self) -> None:
        assert Composition().is_empty()


class TestVerify:
    def test_valid_composition(self, mixed_comp: Composition) -> None:
        mixed_comp.verify()

    def test_missing_hard_dependency(self) -> None:
        comp = make_composition({"m": hard("m1")})
        with pytest.raises(ReferentialIntegrityError, match="m1"):
            comp.verify()

    def test_missing_soft_dependency(self) -> None:
        comp = make_composition({"m": soft("m1")})
        with pytest.raises(ReferentialIntegrityError, match="soft dependency"):
            comp.verify()

    def test_all_violations_are_reported(self) -> None:
        comp = make_composition({"a": hard("x", "y"), "b": soft("z")})
        comp.add("stg", "c", hard("a"))

        with pytest.raises(ReferentialIntegrityError) as exc_info:
            comp.verify()

        violations = exc_info.value.violations
        assert {(v.distribution, v.app, v.dependency, v.kind) for v in violations} == {
            (DISTR, "a", "x", "hard"),
            (DISTR, "a", "y", "hard"),
            (DISTR, "b", "z", "soft"),
            ("stg", "c", "a", "hard"),
        }
        for name in ("x", "y", "z"):
            assert name in str(exc_info.value)

    def test_dependency_must_exist_in_same_distribution(self) -> None:
        comp = make_composition({"a": hard("b")}, "stg")
        comp.add(DISTR, "b")
        with pytest.raises(ReferentialIntegrityError):
            comp.verify()

    def test_soft_cycle_is_valid(self) -> None:
        make_composition({"m": soft("m1"), "m1": soft("m")}).verify()

    def test_reserved_name_from_snapshot(self) -> None:
        comp = Composition(distribution={DISTR: {ROOT_VERTEX_NAME: Dependencies(), "a": hard("x")}})
        with pytest.raises(ReservedNameError):
            comp.verify()


class TestReservedNameWithoutVerify:
    def test_order_with_reserved_app(self) -> None:
        comp = Composition(distribution={DISTR: {ROOT_VERTEX_NAME: Dependencies(), "a": Dependencies()}})
        with pytest.raises(ReservedNameError):
            comp.dependency_order(DISTR)

    def test_order_with_reserved_dependency(self) -> None:
        comp = Composition(distribution={DISTR: {"a": soft(ROOT_VERTEX_NAME)}})
        with pytest.raises(ReservedNameError):
            comp.dependency_order(DISTR)

    def test_order_of_apps_with_reserved_dependency(self) -> None:
        comp = Composition(distribution={DISTR: {"a": hard("b"), "b": hard(ROOT_VERTEX_NAME)}})
        with pytest.raises(ReservedNameError):
            comp.dependency_order(DISTR, "a")

    def test_reserved_app_requested(self) -> None:
        comp = Composition(distribution={DISTR: {ROOT_VERTEX_NAME: Dependencies()}})
        with pytest.raises(ReservedNameError):
            comp.dependency_order(DISTR, ROOT_VERTEX_NAME)

    def test_dot_with_reserved_app(self) -> None:
        comp = Composition(distribution={DISTR: {ROOT_VERTEX_NAME: Dependencies()}})
        with pytest.raises(ReservedNameError):
            comp.dependency_order_dot(DISTR)


class TestDependencyOrder:
    def test_simple_order(self, simple_comp: Composition) -> None:
        assert simple_comp.dependency_order(DISTR) == ["c", "a", "b"]

    def test_mixed_hard_and_soft(self, mixed_comp: Composition) -> None:
        order = mixed_comp.dependency_order(DISTR)

        assert len(order) == 6
        assert sorted(order) == ["a", "b", "c", "d", "m", "m1"]
        assert_after(order, "m", "m1")
        assert_after(order, "m1", "a")
        assert_after(order, "m1", "b")
        assert_after(order, "c", "d")

    def test_mixed_hard_and_soft_exact_order(self, mixed_comp: Composition) -> None:
        assert mixed_comp.dependency_order(DISTR) == ["b", "a", "m1", "d", "m", "c"]

    def test_hard_dependencies_are_ordered_first(self, mixed_comp: Composition) -> None:
        order = mixed_comp.dependency_order(DISTR)
        for app, deps in mixed_comp.distribution[DISTR].items():
            for dep in deps.hard_dependencies:
                assert_after(order, app, dep)

    def test_order_is_deterministic(self, mixed_comp: Composition) -> None:
        first = mixed_comp.dependency_order(DISTR)
        for _ in range(10):
            assert mixed_comp.dependency_order(DISTR) == first

    def test_order_does_not_depend_on_insertion_order(self) -> None:
        apps = {"x": hard("y"), "y": None, "z": soft("x"), "w": None}
        reversed_apps = dict(reversed(list(apps.items())))
        assert make_composition(apps).dependency_order(DISTR) == make_composition(
            reversed_apps,
        ).dependency_order(DISTR)

    def test_apps_without_dependencies_are_included(self) -> None:
        comp = make_composition({"lonely": None, "other": None})
        assert sorted(comp.dependency_order(DISTR)) == ["lonely", "other"]

    def test_root_vertex_is_not_part_of_the_order(self, mixed_comp: Composition) -> None:
        assert ROOT_VERTEX_NAME not in mixed_comp.dependency_order(DISTR)

    def test_hard_cycle(self) -> None:
        comp = make_composition({"m": hard("m1"), "m1": hard("m")})
        with pytest.raises(CycleError):
            comp.dependency_order(DISTR)

    def test_hard_self_dependency(self) -> None:
        comp = make_composition({"m": hard("m")})
        with pytest.raises(CycleError):
            comp.dependency_order(DISTR)

    def test_partly_hard_cycle(self) -> None:
        # a -> b -> c -> a, a also has a soft dependency on c
        comp = make_composition(
            {
                "a": Dependencies(hard_dependencies=frozenset({"b"}), soft_dependencies=frozenset({"c"})),
                "b": hard("c"),
                "c": hard("a"),
            },
        )
        with pytest.raises(CycleError):
            comp.dependency_order(DISTR)

    def test_soft_cycle(self) -> None:
        comp = make_composition({"m": soft("m1"), "m1": soft("m")})
        order = comp.dependency_order(DISTR)
        assert sorted(order) == ["m", "m1"]

    def test_longer_soft_cycle(self) -> None:
        comp = make_composition({"a": soft("b"), "b": soft("c"), "c": soft("a"), "d": hard("a")})
        order = comp.dependency_order(DISTR)
        assert sorted(order) == ["a", "b", "c", "d"]
        assert_after(order, "d", "a")

    def test_unknown_distribution(self, simple_comp: Composition) -> None:
        with pytest.raises(UnknownDistributionError):
            simple_comp.dependency_order("nonexistent")

    def test_distribution_without_apps(self) -> None:
        comp = Composition(distribution={DISTR: {}})
        with pytest.raises(UnknownDistributionError):
            comp.dependency_order(DISTR)


class TestDependencyOrderOfApps:
    def test_subset_contains_recursive_dependencies(self, simple_comp: Composition) -> None:
        assert simple_comp.dependency_order(DISTR, "a") == ["c", "a"]

    def test_subset_of_leaf(self, simple_comp: Composition) -> None:
        assert simple_comp.dependency_order(DISTR, "c") == ["c"]

    def test_subset_follows_soft_dependencies(self, mixed_comp: Composition) -> None:
        order = mixed_comp.dependency_order(DISTR, "b")
        assert sorted(order) == ["b", "c", "d"]
        assert_after(order, "c", "d")

    def test_subset_with_multiple_apps(self, mixed_comp: Composition) -> None:
        order = mixed_comp.dependency_order(DISTR, "c", "m1")
        assert sorted(order) == ["a", "b", "c", "d", "m1"]

    def test_unknown_app(self, simple_comp: Composition) -> None:
        with pytest.raises(UnknownAppError, match="nonexistent"):
            simple_comp.dependency_order(DISTR, "nonexistent")

    def test_unknown_dependency_of_requested_app(self) -> None:
        comp = make_composition({"a": hard("missing")})
        with pytest.raises(UnknownAppError, match="missing"):
            comp.dependency_order(DISTR, "a")

    def test_subset_with_hard_cycle(self) -> None:
        comp = make_composition({"x": hard("m"), "m": hard("m1"), "m1": hard("m")})
        with pytest.raises(CycleError):
            comp.dependency_order(DISTR, "x")


class TestRecursiveDepsOf:
    def test_closure(self, mixed_comp: Composition) -> None:
        result = mixed_comp.recursive_deps_of(DISTR, "m1")
        assert set(result.apps(DISTR)) == {"m1", "a", "b", "c", "d"}
        assert result.distribution[DISTR]["m1"] == mixed_comp.distribution[DISTR]["m1"]

    def test_closure_of_leaf(self, mixed_comp: Composition) -> None:
        assert mixed_comp.recursive_deps_of(DISTR, "d").apps(DISTR) == ["d"]

    def test_closure_is_verified(self, mixed_comp: Composition) -> None:
        mixed_comp.recursive_deps_of(DISTR, "b").verify()

    def test_closure_only_contains_distribution(self) -> None:
        comp = make_composition({"a": None})
        comp.add("stg", "a")
        assert comp.recursive_deps_of(DISTR, "a").distributions == [DISTR]

    def test_closure_with_soft_cycle(self) -> None:
        comp = make_composition({"m": soft("m1"), "m1": soft("m"), "other": None})
        assert set(comp.recursive_deps_of(DISTR, "m").apps(DISTR)) == {"m", "m1"}

    def test_unknown_app(self, mixed_comp: Composition) -> None:
        with pytest.raises(UnknownAppError):
            mixed_comp.recursive_deps_of(DISTR, "nonexistent")


class TestContains:
    def test_contains(self, simple_comp: Composition) -> None:
        assert simple_comp.contains(DISTR, "a")
        assert not simple_comp.contains(DISTR, "nonexistent")

    def test_unknown_distribution(self, simple_comp: Composition) -> None:
        with pytest.raises(UnknownDistributionError):
            simple_comp.contains("nonexistent", "a")


class TestDependencyOrderDot:
    def test_hard_edges(self) -> None:
        comp = make_composition({"a": hard("b"), "b": hard("c"), "c": None})
        dot = comp.dependency_order_dot(DISTR)
        assert "\ta->b;" in dot
        assert "\tb->c;" in dot

    def test_subset(self) -> None:
        comp = make_composition({"a": hard("b"), "b": hard("c"), "c": None})
        dot = comp.dependency_order_dot(DISTR, "b")
        assert "b->c" in dot
        assert "a->b" not in dot
        assert "\ta;" not in dot

    def test_soft_edges_are_dotted(self) -> None:
        comp = make_composition({"a": soft("b"), "b": None})
        assert "\ta->b [style=dotted];" in comp.dependency_order_dot(DISTR)

    def test_apps_without_dependencies_are_nodes(self) -> None:
        comp = make_composition({"lonely": None})
        assert "\tlonely;" in comp.dependency_order_dot(DISTR)

    def test_hard_cycle_is_rendered(self) -> None:
        comp = make_composition({"m": hard("m1"), "m1": hard("m")})
        dot = comp.dependency_order_dot(DISTR)
        assert "\tm->m1;" in dot
        assert "\tm1->m;" in dot

    def test_root_vertex_is_not_rendered(self, mixed_comp: Composition) -> None:
        assert ROOT_VERTEX_NAME not in mixed_comp.dependency_order_dot(DISTR)

    def test_unknown_app(self, mixed_comp: Composition) -> None:
        with pytest.raises(UnknownAppError):
            mixed_comp.dependency_order_dot(DISTR, "nonexistent")

    def test_unknown_distribution(self, mixed_comp: Composition) -> None:
        with pytest.raises(UnknownDistributionError):
            mixed_comp.dependency_order_dot("nonexistent")
