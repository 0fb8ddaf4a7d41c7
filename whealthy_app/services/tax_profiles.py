from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from whealthy_app.schemas import ScenarioParams, TaxResidenceWeights
from whealthy_app.services.cashflows import clamp


# Placeholder effective rates per residence country, blended for the custom jurisdiction.
# holding_patch: HoldingCompanyStructure fields the country implies.
TAX_RESIDENCE_COUNTRIES: Dict[str, Dict[str, object]] = {
    "us": {
        "label": "US",
        "rate": 0.21,
        "holding_patch": {
            "us_corporate_tax_rate": 0.21,
            "public_dividend_source": "us",
            "private_dividend_source": "us",
            "us_ownership_pct": 0.10,
        },
        "assumptions": [
            "US baseline uses 21% federal corporate tax in US-only mode.",
            "If combined with Germany, US withholding applies to US-source public dividends.",
            "No US state tax modeled.",
        ],
    },
    "uk": {
        "label": "UK",
        "rate": 0.25,
        "holding_patch": {
            "public_dividend_source": "other",
            "private_dividend_source": "other",
        },
        "assumptions": [
            "UK currently uses simplified placeholder effective rates.",
            "Treaty relief, allowances, and entity-specific nuances are not modeled yet.",
        ],
    },
    "germany": {
        "label": "Germany",
        "rate": 0.25,
        "holding_patch": {
            "german_ownership_pct": 0.10,
            "is_vermoegensverwaltend": True,
            "german_trade_tax_rate": 0.14,
            "public_dividend_source": "germany",
            "private_dividend_source": "germany",
        },
        "assumptions": [
            "German holding-company logic enabled when Germany is selected.",
            "Defaults to Vermögensverwaltende structure (no Gewerbesteuer).",
            "Dividend treatment uses 95% exemption at qualifying ownership thresholds.",
        ],
    },
    "france": {
        "label": "France",
        "rate": 0.28,
        "holding_patch": {
            "public_dividend_source": "other",
            "private_dividend_source": "other",
        },
        "assumptions": [
            "France currently uses simplified placeholder effective rates.",
            "No surtaxes, social contributions, or regime-specific exemptions modeled yet.",
        ],
    },
}

# Rate used when no residence contributes a rate
_FALLBACK_RATE = 0.25


@dataclass
class TaxSetup:
    tax_jurisdiction: str
    tax_interest: float
    tax_dividends: float
    tax_realized_gains: float
    holding_patch: Dict[str, object] = field(default_factory=dict)
    assumptions: List[str] = field(default_factory=list)


def _unique(residences: Iterable[str]) -> List[str]:
    seen = []
    for r in residences:
        if r not in seen:
            seen.append(r)
    return seen


def _jurisdiction_for(residences: List[str]) -> str:
    has_germany = "germany" in residences
    has_us = "us" in residences
    if has_germany and has_us:
        return "germany-us"
    if has_germany:
        return "germany"
    if has_us and len(residences) == 1:
        return "us"
    return "custom"


def derive_tax_setup(
    residences: Iterable[str],
    weights: Optional[TaxResidenceWeights] = None,
    double_tax_relief: float = 0.5,
) -> TaxSetup:
    """Map a set of tax residences onto a jurisdiction, blended flat rates and holding settings."""
    unique = _unique(residences)
    defs = [TAX_RESIDENCE_COUNTRIES[r] for r in unique]

    raw = [max(0.0, getattr(weights, r, 0.0) if weights is not None else 0.0) for r in unique]
    total = sum(raw)
    if total > 0:
        norm = [w / total for w in raw]
    else:
        norm = [1.0 / max(1, len(unique))] * len(unique)

    blended = sum(d["rate"] * w for d, w in zip(defs, norm)) if defs else _FALLBACK_RATE

    # Each extra residence overlaps the others; relief scales down the blended rate
    overlap = max(0.0, (len(unique) - 1) / max(1, len(unique)))
    relief = 1 - clamp(double_tax_relief, 0.0, 1.0) * overlap
    rate = blended * relief

    patch: Dict[str, object] = {}
    assumptions: List[str] = []
    for d in defs:
        patch.update(d["holding_patch"])
        assumptions.extend(d["assumptions"])

    return TaxSetup(
        tax_jurisdiction=_jurisdiction_for(unique),
        tax_interest=rate,
        tax_dividends=rate,
        tax_realized_gains=rate,
        holding_patch=patch,
        assumptions=assumptions,
    )


def apply_tax_residences(params: ScenarioParams) -> ScenarioParams:
    """Copy of ``params`` with the setup derived from its own tax residences applied."""
    setup = derive_tax_setup(params.tax_residences, params.tax_residence_weights, params.double_tax_relief)
    holding = params.holding_company_structure.model_copy(update=setup.holding_patch)
    return params.model_copy(update={
        "tax_jurisdiction": setup.tax_jurisdiction,
        "tax_interest": setup.tax_interest,
        "tax_dividends": setup.tax_dividends,
        "tax_realized_gains": setup.tax_realized_gains,
        "holding_company_structure": holding,
    })
