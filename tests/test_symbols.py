# =============================================================================
# Unit Tests — Symbol & Risk-Profile Resolution
# =============================================================================

from market_gateway.services.symbols import (
    normalize_risk_profile,
    normalize_ticker,
    resolve_nse_symbol,
)


class TestResolveNseSymbol:
    def test_symbol_resolves_to_itself(self):
        resolved = resolve_nse_symbol("INFY")
        assert resolved is not None
        assert resolved.symbol == "INFY"
        assert resolved.company_name == "Infosys"

    def test_company_name_case_insensitive(self):
        assert resolve_nse_symbol("  state bank of india ").symbol == "SBIN"

    def test_unknown_returns_none(self):
        assert resolve_nse_symbol("NOT A COMPANY") is None

    def test_empty_returns_none(self):
        assert resolve_nse_symbol("") is None
        assert resolve_nse_symbol(None) is None


class TestNormalizeTicker:
    def test_known_company(self):
        assert normalize_ticker("Tata Motors") == "TATAMOTORS"

    def test_unknown_ticker_is_uppercased(self):
        assert normalize_ticker(" aapl ") == "AAPL"


class TestNormalizeRiskProfile:
    def test_medium_maps_to_moderate(self):
        assert normalize_risk_profile("Medium") == "MODERATE"

    def test_passthrough_values(self):
        assert normalize_risk_profile("low") == "LOW"
        assert normalize_risk_profile("MODERATE") == "MODERATE"
        assert normalize_risk_profile("High") == "HIGH"

    def test_unknown_or_missing_defaults(self):
        assert normalize_risk_profile(None) == "MODERATE"
        assert normalize_risk_profile("aggressive") == "MODERATE"
        assert normalize_risk_profile("", default="LOW") == "LOW"
