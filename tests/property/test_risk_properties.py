"""
Property-based tests for touch-count risk classification.
"""

from hypothesis import given, strategies as st

from spot_dca_bot.risk_analyzer import RiskAnalyzer, RiskLabel


LABEL_ORDER = [RiskLabel.HIGH_RISK, RiskLabel.WEAK_ZONE, RiskLabel.SAFE, RiskLabel.VERY_SAFE]

prices = st.floats(min_value=0.01, max_value=100000.0, allow_nan=False, allow_infinity=False)


class TestRiskProperties:
    """Property-based tests for the risk analyzer."""

    @given(a=st.integers(min_value=0, max_value=1000), b=st.integers(min_value=0, max_value=1000))
    def test_classification_is_monotonic(self, a, b):
        """More touches never yield a riskier label or a smaller multiplier."""
        low, high = sorted((a, b))
        low_label, low_multiplier = RiskAnalyzer.classify(low)
        high_label, high_multiplier = RiskAnalyzer.classify(high)

        assert LABEL_ORDER.index(low_label) <= LABEL_ORDER.index(high_label)
        assert low_multiplier <= high_multiplier

    @given(touches=st.integers(min_value=0, max_value=1000))
    def test_only_high_risk_blocks_entry(self, touches):
        label, multiplier = RiskAnalyzer.classify(touches)

        assert 0.0 < multiplier <= 1.0
        assert (label is RiskLabel.HIGH_RISK) == (touches <= 2)

    @given(history=st.lists(prices, max_size=200), target=prices)
    def test_touch_count_bounded_by_history(self, history, target):
        analyzer = RiskAnalyzer()
        touches = analyzer.touch_count(history, target)

        assert 0 <= touches <= len(history)
        assert touches == sum(1 for p in history if analyzer.bucket_key(p) == analyzer.bucket_key(target))

    @given(price=prices, width=st.sampled_from([0.01, 0.1, 0.25, 0.5, 1.0]))
    def test_bucket_key_within_half_bucket(self, price, width):
        key = RiskAnalyzer(width).bucket_key(price)

        assert abs(key / 1000.0 - price) <= width / 2 + 0.002
