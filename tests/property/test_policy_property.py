"""
Property-based tests for jurisdiction policy.

This module uses Hypothesis to drive the policy engine with random
administrative histories and checks evaluation against a plain model.
"""

from typing import Dict, List, Optional, Tuple

from hypothesis import given, settings, strategies as st

from geotrust.core.types import U32_MAX
from geotrust.governance import Authority, CountryPolicyEngine, PolicyConfig
from geotrust.storage import LedgerClock, LedgerStore

ADMIN = "admin"

codes = st.integers(min_value=0, max_value=50)
operations = st.lists(
    st.one_of(
        st.tuples(st.just("set"), codes, st.booleans()),
        st.tuples(st.just("default"), st.just(0), st.booleans()),
    ),
    max_size=40,
)


def build_engine(max_page_size: int = 200) -> CountryPolicyEngine:
    store = LedgerStore(LedgerClock())
    return CountryPolicyEngine(store, Authority(ADMIN, store.admins), PolicyConfig(max_page_size=max_page_size))


def apply(engine: CountryPolicyEngine, ops: List[Tuple[str, int, bool]]) -> Tuple[Dict[int, bool], bool]:
    model: Dict[int, bool] = {}
    default = False
    for kind, code, value in ops:
        if kind == "set":
            engine.set_policy(ADMIN, code, value)
            model[code] = value
        else:
            engine.set_default(ADMIN, value)
            default = value
    return model, default


class TestPolicyProperties:
    """Property-based tests for the policy engine."""

    @given(ops=operations, probe=codes)
    @settings(max_examples=100)
    def test_evaluation_matches_model(self, ops, probe):
        engine = build_engine()
        model, default = apply(engine, ops)

        expected = model.get(probe, default)
        assert engine.is_allowed(probe) == expected

    @given(ops=operations)
    @settings(max_examples=100)
    def test_partitions_are_disjoint(self, ops):
        engine = build_engine()
        model, _ = apply(engine, ops)

        allowed = set(engine.list_allowed_codes(0, 200))
        denied = set(engine.list_denied_codes(0, 200))

        assert not allowed & denied
        assert allowed == {code for code, value in model.items() if value}
        assert denied == {code for code, value in model.items() if not value}

    @given(ops=operations, page_size=st.integers(min_value=1, max_value=7))
    @settings(max_examples=50)
    def test_pages_concatenate_to_sorted_listing(self, ops, page_size):
        engine = build_engine(max_page_size=5)
        model, _ = apply(engine, ops)
        expected = sorted(code for code, value in model.items() if value)

        collected: List[int] = []
        page = 0
        while True:
            chunk = engine.list_allowed_codes(page, page_size)
            if not chunk:
                break
            assert len(chunk) <= min(page_size, 5)
            collected.extend(chunk)
            page += 1

        assert collected == expected

    @given(page=st.integers(min_value=-10, max_value=2 * U32_MAX), page_size=st.integers(min_value=-10, max_value=2 * U32_MAX))
    @settings(max_examples=100)
    def test_listing_never_raises(self, page, page_size):
        engine = build_engine()
        engine.set_policy(ADMIN, 1, True)

        result: Optional[List[int]] = engine.list_allowed_codes(page, page_size)

        assert isinstance(result, list)
        assert result in ([], [1])
