"""
PediaFlow IWL: Data Dictionary
==============================
Inputs (what the clinician enters) and Outputs (what the calculator reports)
for the Insensible Water Loss estimate.

NO FORMULAS live here. Only the shape of the data and the bedside sanity checks.
"""

import math
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Tuple, Union

from pediaflow_iwl.constants import IWL_CONSTANTS, RespiratoryRateBand, RiskFactor

class DataTypeError(TypeError):
    """Raised when inputs are wrong python types (str instead of float)."""
    pass

class InvalidMeasurementError(ValueError):
    """Raised when a measurement is present but physically impossible (e.g. weight <= 0)."""
    pass

def _is_number(value) -> bool:
    # bool is an int subclass; a checkbox value is never a measurement
    return isinstance(value, (int, float)) and not isinstance(value, bool)

def coerce_risk_factor(value: Union[RiskFactor, str]) -> RiskFactor:
    """Accepts the enum itself, its value ('radiant_warmer') or its name ('RADIANT_WARMER')."""
    if isinstance(value, RiskFactor):
        return value
    if isinstance(value, str):
        key = value.strip()
        try:
            return RiskFactor(key.lower())
        except ValueError:
            pass
        if key.upper() in RiskFactor.__members__:
            return RiskFactor[key.upper()]
    raise InvalidMeasurementError(f"Unknown risk factor: {value!r}")

# --- 1. INPUT LAYER ---

@dataclass(frozen=True)
class PatientInput:
    """
    The raw measurements collected at the bedside.
    Height and Weight may be missing (form not filled yet): the calculator withholds a result.
    """
    height_cm: Optional[float] = None
    weight_kg: Optional[float] = None
    temp_celsius: float = IWL_CONSTANTS.BASELINE_TEMP_C
    # 0 = Not assessed (skips tachypnea adjustment)
    respiratory_rate_bpm: float = 0.0
    risk_factors: FrozenSet[RiskFactor] = field(default_factory=frozenset)

    def __post_init__(self):
        # 1. Type Safety (prevent string math crashes)
        for name in ('height_cm', 'weight_kg'):
            val = getattr(self, name)
            if val is not None and not _is_number(val):
                raise DataTypeError(f"Field '{name}' must be numeric, got {type(val)}")
        for name in ('temp_celsius', 'respiratory_rate_bpm'):
            val = getattr(self, name)
            if not _is_number(val):
                raise DataTypeError(f"Field '{name}' must be numeric, got {type(val)}")

        # 2. Physical Impossibility
        # Non-positive or non-finite Ht/Wt would give BSA = 0, NaN or inf.
        if self.height_cm is not None and not (0 < self.height_cm < math.inf):
            raise InvalidMeasurementError(f"Invalid height: {self.height_cm}")
        if self.weight_kg is not None and not (0 < self.weight_kg < math.inf):
            raise InvalidMeasurementError(f"Invalid weight: {self.weight_kg}")
        if self.respiratory_rate_bpm < 0:
            raise InvalidMeasurementError(f"RR {self.respiratory_rate_bpm} is physically impossible")

        # 3. Normalize toggles to a frozenset of enums
        if isinstance(self.risk_factors, (str, RiskFactor)):
            raise DataTypeError("risk_factors must be a collection, not a single value")
        factors = frozenset(coerce_risk_factor(f) for f in self.risk_factors)
        object.__setattr__(self, 'risk_factors', factors)

    @property
    def has_required_measurements(self) -> bool:
        return self.height_cm is not None and self.weight_kg is not None

# --- 2. OUTPUT LAYER ---

@dataclass
class CalculationWarnings:
    """Tracks non-critical issues with the form values that the clinician should know."""
    defaulted_fields: List[str] = field(default_factory=list)
    unparsed_values: List[str] = field(default_factory=list)

@dataclass(frozen=True)
class IWLResult:
    """
    The estimate displayed to the clinician. Ranges are (low, high).
    Never mutated: every input change produces a new result.
    """
    bsa: float                                      # m2 (Mosteller)
    base_iwl_range: Tuple[float, float]             # mL/day, BSA method
    weight_based_iwl_range: Tuple[float, float]     # mL/day, informational only
    fever_adjustment_fraction: float                # 0.26 = +26%
    respiratory_adjustment_ml: float                # mL/day, tachypnea
    risk_factor_adjustment_ml: float                # mL/day, environment/skin
    adjusted_iwl_range: Tuple[float, float]         # mL/day, final estimate
    hourly_rate_range: Tuple[float, float]          # mL/hr
    applied_rr_band: RespiratoryRateBand

    # Carried for the derived presentation values
    weight_kg: float
    applied_risk_factors: FrozenSet[RiskFactor] = field(default_factory=frozenset)

    @property
    def fever_multiplier(self) -> float:
        return 1.0 + self.fever_adjustment_fraction

    @property
    def body_weight_percent_range(self) -> Tuple[float, float]:
        """IWL as % of body weight per day (mL / kg / 10)."""
        low, high = self.adjusted_iwl_range
        return (low / self.weight_kg / 10.0, high / self.weight_kg / 10.0)

    @property
    def has_adjustments(self) -> bool:
        return (self.fever_adjustment_fraction > 0
                or self.respiratory_adjustment_ml > 0
                or self.risk_factor_adjustment_ml > 0)

def risk_factor_set(values: Iterable[Union[RiskFactor, str]]) -> FrozenSet[RiskFactor]:
    return frozenset(coerce_risk_factor(v) for v in values)
