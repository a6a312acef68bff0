"""
PediaFlow IWL: Core Calculation Engine
======================================
Translates bedside measurements into an Insensible Water Loss estimate.

Pipeline (single pass, no state):
    BSA -> Base IWL -> Fever x -> + Tachypnea -> + Risk Factors -> Hourly
"""

import logging
import math
from typing import Optional, Tuple, FrozenSet

from pediaflow_iwl.constants import (
    IWL_CONSTANTS,
    RESPIRATORY_CONSTANTS,
    RISK_FACTOR_LIBRARY,
    RespiratoryRateBand,
    RiskFactor,
)
from pediaflow_iwl.models import (
    PatientInput,
    IWLResult,
    CalculationWarnings,
    risk_factor_set,
)

logger = logging.getLogger(__name__)

class IWLCalculator:
    """
    The Mathematical Core.
    Stateless: every method is a pure function of its arguments.
    """

    @staticmethod
    def _calculate_bsa(height_cm: float, weight_kg: float) -> float:
        """
        Calculates Body Surface Area (m²) using Mosteller formula.
        """
        return math.sqrt((height_cm * weight_kg) / IWL_CONSTANTS.MOSTELLER_DIVISOR)

    @staticmethod
    def _calculate_base_iwl(bsa: float) -> Tuple[float, float]:
        # 400-500 ml/m2/day under standard conditions
        return (bsa * IWL_CONSTANTS.BSA_RATE_LOW, bsa * IWL_CONSTANTS.BSA_RATE_HIGH)

    @staticmethod
    def _calculate_weight_based_iwl(weight_kg: float) -> Tuple[float, float]:
        # Cross-check only. Not folded into the final estimate.
        return (weight_kg * IWL_CONSTANTS.WEIGHT_RATE_LOW, weight_kg * IWL_CONSTANTS.WEIGHT_RATE_HIGH)

    @staticmethod
    def get_normal_rr_band(weight_kg: float) -> RespiratoryRateBand:
        """
        Normal respiratory rate for the child's weight class.
        Bands are ordered by ascending weight bound; the first bound above the weight wins.
        """
        for upper_bound_kg, band in RESPIRATORY_CONSTANTS.NORMAL_RR_BANDS:
            if weight_kg < upper_bound_kg:
                return band
        # Last bound is +inf, so only NaN gets here
        return RESPIRATORY_CONSTANTS.NORMAL_RR_BANDS[-1][1]

    @staticmethod
    def _calculate_fever_fraction(temp_celsius: float) -> float:
        """
        Fever Correction: +13% per degree > 37.
        No reduction for hypothermia.
        """
        if temp_celsius > IWL_CONSTANTS.BASELINE_TEMP_C:
            excess_temp = temp_celsius - IWL_CONSTANTS.BASELINE_TEMP_C
            return excess_temp * IWL_CONSTANTS.FEVER_FRACTION_PER_DEGREE
        return 0.0

    @staticmethod
    def _calculate_respiratory_adjustment(respiratory_rate_bpm: float,
                                          band: RespiratoryRateBand,
                                          weight_kg: float) -> float:
        """
        Tachypnea Correction: 2 ml/kg/day per breath above the normal band.
        Rates below the band (or 0 = not assessed) add nothing.
        """
        if respiratory_rate_bpm > band.max_rate:
            excess_breaths = respiratory_rate_bpm - band.max_rate
            return excess_breaths * IWL_CONSTANTS.TACHYPNEA_ML_PER_KG_PER_BREATH * weight_kg
        return 0.0

    @staticmethod
    def _calculate_risk_factor_adjustment(risk_factors: FrozenSet[RiskFactor],
                                          base_iwl_low: float) -> float:
        # Linear sum in declaration order, no caps, no interaction between factors
        total_fraction = sum(
            RISK_FACTOR_LIBRARY.get(f).fraction for f in RiskFactor if f in risk_factors
        )
        return base_iwl_low * total_fraction

    @staticmethod
    def compute(patient: PatientInput) -> Optional[IWLResult]:
        """
        MASTER BUILDER: Full IWL estimate for this child.
        Returns None when Height or Weight is missing (nothing to show yet).
        """
        if not patient.has_required_measurements:
            logger.info("IWL withheld: height and weight are required")
            return None

        # 1. Surface Area & Baseline
        bsa = IWLCalculator._calculate_bsa(patient.height_cm, patient.weight_kg)
        base_low, base_high = IWLCalculator._calculate_base_iwl(bsa)
        weight_based = IWLCalculator._calculate_weight_based_iwl(patient.weight_kg)

        # 2. Adjustments
        rr_band = IWLCalculator.get_normal_rr_band(patient.weight_kg)
        fever_fraction = IWLCalculator._calculate_fever_fraction(patient.temp_celsius)
        fever_multiplier = 1.0 + fever_fraction
        rr_adjustment = IWLCalculator._calculate_respiratory_adjustment(
            patient.respiratory_rate_bpm, rr_band, patient.weight_kg
        )
        # Risk factors scale off the pre-fever low end
        rf_adjustment = IWLCalculator._calculate_risk_factor_adjustment(
            patient.risk_factors, base_low
        )

        logger.debug(
            "BSA=%.4f m2 | Base=%.1f-%.1f ml/day | Fever x%.3f | RR band %s (%d-%d) +%.1f ml | RF +%.1f ml",
            bsa, base_low, base_high, fever_multiplier,
            rr_band.age_label, rr_band.min_rate, rr_band.max_rate, rr_adjustment, rf_adjustment
        )

        # 3. Final Estimate (additive terms apply equally to both bounds)
        adjusted_low = (base_low * fever_multiplier) + rr_adjustment + rf_adjustment
        adjusted_high = (base_high * fever_multiplier) + rr_adjustment + rf_adjustment

        hours = IWL_CONSTANTS.HOURS_PER_DAY
        return IWLResult(
            bsa=bsa,
            base_iwl_range=(base_low, base_high),
            weight_based_iwl_range=weight_based,
            fever_adjustment_fraction=fever_fraction,
            respiratory_adjustment_ml=rr_adjustment,
            risk_factor_adjustment_ml=rf_adjustment,
            adjusted_iwl_range=(adjusted_low, adjusted_high),
            hourly_rate_range=(adjusted_low / hours, adjusted_high / hours),
            applied_rr_band=rr_band,
            weight_kg=patient.weight_kg,
            applied_risk_factors=patient.risk_factors,
        )

    @staticmethod
    def parse_number(value) -> Optional[float]:
        """Form field -> float. Blank, missing, non-numeric or non-finite -> None."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            text = str(value).strip()
            if not text:
                return None
            try:
                number = float(text)
            except ValueError:
                return None
        # 'inf', 'nan', '1e400' are not measurements
        if not math.isfinite(number):
            return None
        return number

    @staticmethod
    def parse_form(data: dict, warnings: Optional[CalculationWarnings] = None) -> PatientInput:
        """
        SAFE FACTORY: Raw form values (strings as typed) -> PatientInput.
        Optional fields fall back to safe defaults; the fallbacks are noted in `warnings`.
        """
        if warnings is None:
            warnings = CalculationWarnings()

        height = IWLCalculator.parse_number(data.get('height_cm'))
        weight = IWLCalculator.parse_number(data.get('weight_kg'))
        for key, parsed in (('height_cm', height), ('weight_kg', weight)):
            raw = data.get(key)
            if parsed is None and raw is not None and str(raw).strip() != '':
                warnings.unparsed_values.append(key)

        temp = IWLCalculator.parse_number(data.get('temp_celsius'))
        if temp is None:
            temp = IWL_CONSTANTS.BASELINE_TEMP_C
            warnings.defaulted_fields.append('temp_celsius')

        rr = IWLCalculator.parse_number(data.get('respiratory_rate_bpm'))
        if rr is None:
            rr = 0.0
            warnings.defaulted_fields.append('respiratory_rate_bpm')

        # The form keeps toggles as {name: checked}; the API sends a list of names
        raw_factors = data.get('risk_factors') or []
        if isinstance(raw_factors, dict):
            raw_factors = [name for name, checked in raw_factors.items() if checked]

        return PatientInput(
            height_cm=height,
            weight_kg=weight,
            temp_celsius=temp,
            respiratory_rate_bpm=rr,
            risk_factors=risk_factor_set(raw_factors),
        )

    @staticmethod
    def calculate_from_form(data: dict,
                            warnings: Optional[CalculationWarnings] = None) -> Optional[IWLResult]:
        """
        Recompute-on-demand entry for any interactive shell.
        Missing Height/Weight -> None. Impossible values -> InvalidMeasurementError.
        Pass a `warnings` container to see which form values were defaulted or unreadable.
        """
        patient = IWLCalculator.parse_form(data, warnings)
        return IWLCalculator.compute(patient)

def calculate_iwl(patient_data: dict,
                  warnings: Optional[CalculationWarnings] = None) -> Optional[IWLResult]:
    """
    Service entry point (API / batch scripts).
    """
    logger.info(
        "Calculating IWL for Ht: %s cm, Wt: %s kg",
        patient_data.get('height_cm'), patient_data.get('weight_kg')
    )
    result = IWLCalculator.calculate_from_form(patient_data, warnings)
    if warnings is not None and warnings.unparsed_values:
        logger.warning(f"Unreadable form values: {warnings.unparsed_values}")
    return result
