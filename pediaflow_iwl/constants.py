import math
from enum import Enum
from dataclasses import dataclass

# --- METADATA & COMPLIANCE ---
VERSION = "1.0.0"
MODULE_NAME = "pediaflow-iwl-calculator"

MEDICAL_DISCLAIMER = """
⚠️ DECISION SUPPORT TOOL - FOR CLINICAL GUIDANCE ONLY
• Final responsibility: Treating physician
• Always consider individual patient factors
• Offline calculator - no real-time monitoring
"""

class RiskFactor(Enum):
    PHOTOTHERAPY = "phototherapy"
    RADIANT_WARMER = "radiant_warmer"
    LOW_HUMIDITY = "low_humidity"   # Ambient humidity < 30%
    BURNS = "burns"                 # Burns / Skin Breakdown

@dataclass(frozen=True)
class RiskFactorProperties:
    label: str
    fraction: float  # Fraction of the BSA low-end IWL added per day

@dataclass(frozen=True)
class RespiratoryRateBand:
    """Normal resting respiratory rate for a weight class (breaths/min)."""
    min_rate: int
    max_rate: int
    age_label: str

class IWL_CONSTANTS:
    # Mosteller: BSA = sqrt(Ht(cm) * Wt(kg) / 3600)
    MOSTELLER_DIVISOR = 3600.0

    # BSA Method (mL/m2/day)
    BSA_RATE_LOW = 400.0
    BSA_RATE_HIGH = 500.0

    # Weight Method (mL/kg/day) - informational only
    WEIGHT_RATE_LOW = 15.0
    WEIGHT_RATE_HIGH = 20.0

    # Fever: +13% per degree above baseline
    BASELINE_TEMP_C = 37.0
    FEVER_FRACTION_PER_DEGREE = 0.13

    # Tachypnea: 2 mL/kg/day per breath above the normal band
    TACHYPNEA_ML_PER_KG_PER_BREATH = 2.0

    HOURS_PER_DAY = 24.0

class RESPIRATORY_CONSTANTS:
    # Weight (kg, exclusive upper bound): Normal RR band
    # Ordered ascending. First match wins.
    NORMAL_RR_BANDS = [
        (3.0, RespiratoryRateBand(min_rate=30, max_rate=60, age_label="Newborn")),
        (5.0, RespiratoryRateBand(min_rate=30, max_rate=50, age_label="0-3 months")),
        (8.0, RespiratoryRateBand(min_rate=25, max_rate=40, age_label="3-6 months")),
        (12.0, RespiratoryRateBand(min_rate=20, max_rate=35, age_label="6-12 months")),
        (20.0, RespiratoryRateBand(min_rate=20, max_rate=30, age_label="1-3 years")),
        (math.inf, RespiratoryRateBand(min_rate=15, max_rate=25, age_label="3+ years")),
    ]

class RISK_FACTOR_LIBRARY:
    """
    Environmental and skin-integrity factors that raise evaporative loss.
    Each adds a fixed fraction of the BSA low-end estimate.
    """
    SPECS = {
        RiskFactor.PHOTOTHERAPY: RiskFactorProperties(
            label="Phototherapy", fraction=0.20
        ),
        RiskFactor.RADIANT_WARMER: RiskFactorProperties(
            label="Radiant Warmer", fraction=0.30
        ),
        RiskFactor.LOW_HUMIDITY: RiskFactorProperties(
            label="Low Humidity (<30%)", fraction=0.25
        ),
        RiskFactor.BURNS: RiskFactorProperties(
            label="Burns/Skin Breakdown", fraction=0.50
        ),
    }

    @staticmethod
    def get(factor: RiskFactor) -> RiskFactorProperties:
        return RISK_FACTOR_LIBRARY.SPECS[factor]
