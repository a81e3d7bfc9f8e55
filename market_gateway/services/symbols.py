# =============================================================================
# Symbol & Risk-Profile Resolution
# =============================================================================
#
# Downstream analysis services only understand NSE trading symbols and the
# three risk profiles LOW / MODERATE / HIGH. Users type company names
# ("Tata Consultancy Services") and the frontend stores profiles as
# Low / Medium / High, so both are canonicalised here before they reach a
# cache key or an upstream request.
#
# The symbol map is a static list of commonly requested companies. Unknown
# input passes through as an upper-cased ticker.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ResolvedSymbol:
    symbol: str
    company_name: str


_TCS = ResolvedSymbol("TCS", "Tata Consultancy Services")
_RELIANCE = ResolvedSymbol("RELIANCE", "Reliance Industries")
_INFY = ResolvedSymbol("INFY", "Infosys")
_HDFCBANK = ResolvedSymbol("HDFCBANK", "HDFC Bank")
_ICICIBANK = ResolvedSymbol("ICICIBANK", "ICICI Bank")
_WIPRO = ResolvedSymbol("WIPRO", "Wipro")
_TATAMOTORS = ResolvedSymbol("TATAMOTORS", "Tata Motors")
_SBIN = ResolvedSymbol("SBIN", "State Bank of India")

NSE_SYMBOL_MAP: dict[str, ResolvedSymbol] = {
    "TCS": _TCS,
    "TATA CONSULTANCY SERVICES": _TCS,
    "RELIANCE": _RELIANCE,
    "RELIANCE INDUSTRIES": _RELIANCE,
    "INFY": _INFY,
    "INFOSYS": _INFY,
    "HDFCBANK": _HDFCBANK,
    "HDFC BANK": _HDFCBANK,
    "ICICIBANK": _ICICIBANK,
    "ICICI BANK": _ICICIBANK,
    "WIPRO": _WIPRO,
    "TATAMOTORS": _TATAMOTORS,
    "TATA MOTORS": _TATAMOTORS,
    "SBIN": _SBIN,
    "STATE BANK OF INDIA": _SBIN,
}

RISK_PROFILES = ("LOW", "MODERATE", "HIGH")
DEFAULT_RISK_PROFILE = "MODERATE"

# Stored profile values → API values
_RISK_PROFILE_ALIASES = {
    "LOW": "LOW",
    "MEDIUM": "MODERATE",
    "MODERATE": "MODERATE",
    "HIGH": "HIGH",
}


def resolve_nse_symbol(raw: str | None) -> ResolvedSymbol | None:
    """Resolve a symbol or company name to its NSE symbol, or None."""
    if not raw or not isinstance(raw, str):
        return None
    return NSE_SYMBOL_MAP.get(raw.strip().upper())


def normalize_ticker(raw: str) -> str:
    """Canonical ticker: the NSE symbol when known, else trimmed upper-case."""
    resolved = resolve_nse_symbol(raw)
    if resolved is not None:
        return resolved.symbol
    return raw.strip().upper()


def normalize_risk_profile(
    raw: str | None, default: str = DEFAULT_RISK_PROFILE,
) -> str:
    """Map Low/Medium/High (any case) to LOW/MODERATE/HIGH; unknown → default."""
    if not raw:
        return default
    return _RISK_PROFILE_ALIASES.get(raw.strip().upper(), default)
