# clinical_notes.py
from typing import List

from pediaflow_iwl.constants import RISK_FACTOR_LIBRARY, RespiratoryRateBand
from pediaflow_iwl.models import IWLResult

CLINICAL_NOTES = [
    "Add to maintenance fluids and replace other losses",
    "Monitor closely with fever or environmental changes",
    "Consider increased monitoring if multiple risk factors present",
    "Reassess if clinical condition changes",
]

PLACEHOLDER_MESSAGE = "Enter height and weight to calculate insensible water loss"

def format_normal_rr(band: RespiratoryRateBand) -> str:
    return f"Normal range for {band.age_label}: {band.min_rate}-{band.max_rate} breaths/min"

def describe_risk_factors(result: IWLResult) -> List[str]:
    """Labels of the applied factors, largest contribution first."""
    props = [RISK_FACTOR_LIBRARY.get(f) for f in result.applied_risk_factors]
    props.sort(key=lambda p: (-p.fraction, p.label))
    return [f"{p.label} (+{p.fraction * 100:.0f}%)" for p in props]

def describe_adjustments(result: IWLResult) -> List[str]:
    """
    The 'Adjustments Applied' panel.
    Only non-zero adjustments are listed; an unadjusted estimate returns [].
    """
    lines = []

    # 1. Fever (multiplicative, shown as %)
    if result.fever_adjustment_fraction > 0:
        lines.append(f"Fever: +{result.fever_adjustment_fraction * 100:.1f}% increase")

    # 2. Tachypnea (additive)
    if result.respiratory_adjustment_ml > 0:
        lines.append(f"Tachypnea: +{result.respiratory_adjustment_ml:.0f} mL/day")

    # 3. Environment / Skin (additive)
    if result.risk_factor_adjustment_ml > 0:
        lines.append(f"Risk factors: +{result.risk_factor_adjustment_ml:.0f} mL/day")

    return lines

def build_summary(result: IWLResult) -> str:
    """
    Quick read for the bedside.
    e.g. "Total IWL 171-213 mL/day (7.1-8.9 mL/hr), 2.0%-2.5% of body weight per day."
    """
    low, high = result.adjusted_iwl_range
    hr_low, hr_high = result.hourly_rate_range
    pct_low, pct_high = result.body_weight_percent_range
    return (f"Total IWL {low:.0f}-{high:.0f} mL/day ({hr_low:.1f}-{hr_high:.1f} mL/hr), "
            f"{pct_low:.1f}%-{pct_high:.1f}% of body weight per day.")
