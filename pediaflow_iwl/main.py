# main.py

import logging
from typing import Optional, List, Tuple, Union
from datetime import datetime
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationInfo, field_validator

from pediaflow_iwl.constants import VERSION, MODULE_NAME, MEDICAL_DISCLAIMER, RiskFactor
from pediaflow_iwl.models import IWLResult, CalculationWarnings
from pediaflow_iwl.iwl_engine import IWLCalculator, calculate_iwl
from pediaflow_iwl.clinical_notes import (
    CLINICAL_NOTES,
    PLACEHOLDER_MESSAGE,
    build_summary,
    describe_adjustments,
    describe_risk_factors,
    format_normal_rr,
)

# --- 1. CONFIGURATION & LOGGING ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("pediaflow-iwl-api")

app = FastAPI(
    title="PediaFlow IWL API",
    version=VERSION,
    description="Pediatric Insensible Water Loss Calculator. \n\n"
                "**WARNING**: For clinical guidance only. Always consider individual patient factors.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
def read_root():
    return {"status": "active", "message": "PediaFlow IWL API is running successfully!"}

@app.get("/health")
def health_check():
    """K8s/AWS health check"""
    return {"status": "active", "version": VERSION, "module": MODULE_NAME}

# --- 2. STRICT INPUT SCHEMA (The Guardrails) ---
# Physiological limits applied once a form value parses to a number: (low, high, low_inclusive)
REQUEST_LIMITS = {
    'height_cm': (20.0, 250.0, False),
    'weight_kg': (0.3, 150.0, False),
    'temp_celsius': (25.0, 45.0, False),
    'respiratory_rate_bpm': (0.0, 200.0, True),
}

class IWLRequest(BaseModel):
    # Form values as typed. Blank/unreadable Ht/Wt -> placeholder, blank Temp/RR -> defaults.
    height_cm: Optional[Union[float, str]] = Field(None, description="Height in cm (20-250)")
    weight_kg: Optional[Union[float, str]] = Field(None, description="Weight in kg (0.3-150)")
    temp_celsius: Optional[Union[float, str]] = Field(37.0, description="Core Temperature (25-45)")
    respiratory_rate_bpm: Optional[Union[float, str]] = Field(0.0, description="0 = not assessed")

    # Auto-maps strings to Enums (e.g., "radiant_warmer" -> RiskFactor.RADIANT_WARMER)
    risk_factors: List[RiskFactor] = Field(default_factory=list)

    # Audit trail
    request_timestamp: Optional[datetime] = Field(default_factory=datetime.now)

    model_config = {
        "json_schema_extra": {
            "example": {
                "height_cm": 77.0, "weight_kg": 8.5, "temp_celsius": 39.0,
                "respiratory_rate_bpm": 55, "risk_factors": ["phototherapy"]
            }
        }
    }

    @field_validator('height_cm', 'weight_kg', 'temp_celsius', 'respiratory_rate_bpm')
    @classmethod
    def check_physiological_limits(cls, value, info: ValidationInfo):
        number = IWLCalculator.parse_number(value)
        if number is None:
            # Left as sent; the engine decides between placeholder and default
            return value
        low, high, low_inclusive = REQUEST_LIMITS[info.field_name]
        above_low = number >= low if low_inclusive else number > low
        if not (above_low and number <= high):
            raise ValueError(f"{info.field_name} {number} outside {low}-{high}")
        return number

# --- 3. EXPLICIT RESPONSE SCHEMA (The Contract) ---
class RespiratoryBandResponse(BaseModel):
    min_rate: int
    max_rate: int
    age_label: str
    description: str

class IWLResultResponse(BaseModel):
    bsa: float
    base_iwl_range: Tuple[float, float]
    weight_based_iwl_range: Tuple[float, float]
    fever_adjustment_fraction: float
    respiratory_adjustment_ml: float
    risk_factor_adjustment_ml: float
    adjusted_iwl_range: Tuple[float, float]
    hourly_rate_range: Tuple[float, float]
    body_weight_percent_range: Tuple[float, float]
    applied_rr_band: RespiratoryBandResponse
    applied_risk_factors: List[str]

class IWLResponse(BaseModel):
    available: bool
    message: str = ""
    result: Optional[IWLResultResponse] = None
    adjustments: List[str] = Field(default_factory=list)
    clinical_notes: List[str] = Field(default_factory=list)
    human_readable_summary: str = ""

    # Form values that were defaulted (Temp/RR) or could not be read (Ht/Wt)
    defaulted_fields: List[str] = Field(default_factory=list)
    unparsed_values: List[str] = Field(default_factory=list)
    disclaimer: str = MEDICAL_DISCLAIMER.strip()
    generated_at: datetime = Field(default_factory=datetime.now)

def _band_response(band) -> RespiratoryBandResponse:
    return RespiratoryBandResponse(
        min_rate=band.min_rate,
        max_rate=band.max_rate,
        age_label=band.age_label,
        description=format_normal_rr(band),
    )

def _to_response(result: IWLResult, warnings: CalculationWarnings) -> IWLResponse:
    return IWLResponse(
        available=True,
        defaulted_fields=warnings.defaulted_fields,
        unparsed_values=warnings.unparsed_values,
        result=IWLResultResponse(
            bsa=result.bsa,
            base_iwl_range=result.base_iwl_range,
            weight_based_iwl_range=result.weight_based_iwl_range,
            fever_adjustment_fraction=result.fever_adjustment_fraction,
            respiratory_adjustment_ml=result.respiratory_adjustment_ml,
            risk_factor_adjustment_ml=result.risk_factor_adjustment_ml,
            adjusted_iwl_range=result.adjusted_iwl_range,
            hourly_rate_range=result.hourly_rate_range,
            body_weight_percent_range=result.body_weight_percent_range,
            applied_rr_band=_band_response(result.applied_rr_band),
            applied_risk_factors=describe_risk_factors(result),
        ),
        adjustments=describe_adjustments(result),
        clinical_notes=list(CLINICAL_NOTES),
        human_readable_summary=build_summary(result),
    )

# --- 4. ENDPOINTS ---

@app.post("/calculate", response_model=IWLResponse)
def get_iwl_estimate(patient: IWLRequest):
    """
    Estimates daily and hourly insensible water loss.
    Each request is recomputed from scratch; nothing is stored.
    """
    try:
        patient_data = patient.model_dump(exclude={'request_timestamp'})
        patient_data['risk_factors'] = [f.value for f in patient.risk_factors]

        warnings = CalculationWarnings()
        result = calculate_iwl(patient_data, warnings)
        if result is None:
            return IWLResponse(
                available=False,
                message=PLACEHOLDER_MESSAGE,
                defaulted_fields=warnings.defaulted_fields,
                unparsed_values=warnings.unparsed_values,
            )

        return _to_response(result, warnings)

    except ValueError as e:
        logger.warning(f"Clinical Validation Error: {str(e)}")
        raise HTTPException(status_code=422, detail=f"Clinical Validation Error: {str(e)}")

    except Exception as e:
        logger.error(f"Internal Engine Failure: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal IWL Engine Error")

@app.get("/respiratory-band", response_model=RespiratoryBandResponse)
def get_respiratory_band(weight_kg: float = Query(..., gt=0.0, le=150.0)):
    """Normal resting respiratory rate for a weight class."""
    return _band_response(IWLCalculator.get_normal_rr_band(weight_kg))
