"""
Scan Config Model
=================
Pydantic model for the repository config file (.nightfalldlp/config.json).

Example:
    {
      "detectors": [
        {"nightfallDetector": "CREDIT_CARD_NUMBER", "minConfidence": "POSSIBLE"},
        {"nightfallDetector": "API_KEY", "minConfidence": "LIKELY", "displayName": "api key"}
      ],
      "maxNumberConcurrentRoutines": 20,
      "tokenExclusionList": ["4242-4242-4242-[0-9]{4}"],
      "fileInclusionList": ["*"],
      "fileExclusionList": [".nightfalldlp/config.json"]
    }
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from diffscan.core.constants import DEFAULT_MAX_CONCURRENT_SCANS, MAX_CONCURRENT_SCANS_CAP
from diffscan.models.finding import Confidence


class DetectorConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nightfall_detector: str = Field(alias="nightfallDetector")
    min_confidence: Confidence = Field(default=Confidence.POSSIBLE, alias="minConfidence")
    display_name: Optional[str] = Field(default=None, alias="displayName")


class ScanConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    detectors: List[DetectorConfig]
    max_concurrency: int = Field(
        default=DEFAULT_MAX_CONCURRENT_SCANS, alias="maxNumberConcurrentRoutines"
    )
    token_exclusion_list: List[str] = Field(default=[], alias="tokenExclusionList")
    file_inclusion_list: List[str] = Field(default=[], alias="fileInclusionList")
    file_exclusion_list: List[str] = Field(default=[], alias="fileExclusionList")

    @field_validator("detectors")
    @classmethod
    def _require_detectors(cls, value: List[DetectorConfig]) -> List[DetectorConfig]:
        if not value:
            raise ValueError("at least one detector must be configured")
        # findings come back under these labels
        labels = [d.display_name or d.nightfall_detector for d in value]
        if len(labels) != len(set(labels)):
            raise ValueError("detector displayName values and identifiers must be unique")
        return value

    @field_validator("max_concurrency", mode="before")
    @classmethod
    def _clamp_concurrency(cls, value):
        # 0 / null in the file means "use the default"
        if not value:
            return DEFAULT_MAX_CONCURRENT_SCANS
        value = int(value)
        if value < 0:
            raise ValueError(f"maxNumberConcurrentRoutines must not be negative, got {value}")
        return min(value, MAX_CONCURRENT_SCANS_CAP)

    @property
    def policy(self) -> Dict[str, Confidence]:
        """Detector name → minimum confidence bucket."""
        return {d.nightfall_detector: d.min_confidence for d in self.detectors}

    @property
    def display_names(self) -> Dict[str, str]:
        """Detector name → configured displayName, for detectors that set one."""
        return {d.nightfall_detector: d.display_name for d in self.detectors if d.display_name}
