"""API Schemas - Request/Response models for the API Gateway.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ipverify.core.types import LoginEvent, NeighborReport, VerificationResult
from ipverify.geo.lookup import parse_ip
from ipverify.common.constants import StoreConstants
from ipverify.common.exceptions import MalformedAddressError


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class VerifyRequest(BaseModel):
    """Login event submitted for verification."""
    username: str = Field(default="", description="User the login belongs to")
    unix_timestamp: int = Field(default=0, description="Login time, Unix seconds")
    event_uuid: str = Field(default="", description="Unique event identifier (UUID)")
    ip_address: str = Field(default="", description="Source IPv4 or IPv6 address")

    model_config = {
        "validate_default": True,
        "json_schema_extra": {
            "example": {
                "username": "bob",
                "unix_timestamp": 1514764800,
                "event_uuid": "85ad929a-db03-4bf4-9541-8f728fa12e42",
                "ip_address": "206.81.252.6",
            }
        }
    }

    @field_validator("username")
    @classmethod
    def _username_present(cls, v: str) -> str:
        if not v:
            raise ValueError("missing username")
        return v

    @field_validator("unix_timestamp")
    @classmethod
    def _timestamp_in_range(cls, v: int) -> int:
        if v <= 0 or v > StoreConstants.MAX_TIMESTAMP:
            raise ValueError(f"invalid timestamp: {v}")
        return v

    @field_validator("event_uuid")
    @classmethod
    def _uuid_valid(cls, v: str) -> str:
        try:
            uuid.UUID(v)
        except ValueError:
            raise ValueError(f"invalid UUID: {v}") from None
        return v

    @field_validator("ip_address")
    @classmethod
    def _ip_valid(cls, v: str) -> str:
        try:
            parse_ip(v)
        except MalformedAddressError:
            raise ValueError(f"invalid IP address: {v}") from None
        return v

    def to_event(self) -> LoginEvent:
        return LoginEvent(
            event_id=self.event_uuid,
            user_id=self.username,
            ip_address=self.ip_address,
            unix_timestamp=self.unix_timestamp,
        )


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class CurrentGeo(BaseModel):
    """Location of the login being verified."""
    lat: float
    lon: float
    radius: int


class IPAccess(BaseModel):
    """A neighbouring login and the travel speed to or from it."""
    ip: str
    speed: int
    lat: float
    lon: float
    radius: int
    timestamp: int

    @classmethod
    def from_report(cls, report: NeighborReport) -> "IPAccess":
        return cls(
            ip=report.ip_address,
            speed=report.speed,
            lat=report.location.latitude,
            lon=report.location.longitude,
            radius=report.location.accuracy_radius,
            timestamp=report.unix_timestamp,
        )


class VerifyResponse(BaseModel):
    """Verification result. Absent neighbours are omitted."""
    model_config = ConfigDict(populate_by_name=True)

    current_geo: CurrentGeo = Field(..., alias="currentGeo")
    travel_to_current_geo_suspicious: Optional[bool] = Field(
        default=None, alias="travelToCurrentGeoSuspicious"
    )
    travel_from_current_geo_suspicious: Optional[bool] = Field(
        default=None, alias="travelFromCurrentGeoSuspicious"
    )
    preceding_ip_access: Optional[IPAccess] = Field(
        default=None, alias="precedingIpAccess"
    )
    subsequent_ip_access: Optional[IPAccess] = Field(
        default=None, alias="subsequentIpAccess"
    )

    @classmethod
    def from_result(cls, result: VerificationResult) -> "VerifyResponse":
        response = cls(
            current_geo=CurrentGeo(
                lat=result.current.latitude,
                lon=result.current.longitude,
                radius=result.current.accuracy_radius,
            )
        )
        if result.preceding is not None:
            response.travel_to_current_geo_suspicious = result.preceding.suspicious
            response.preceding_ip_access = IPAccess.from_report(result.preceding)
        if result.subsequent is not None:
            response.travel_from_current_geo_suspicious = result.subsequent.suspicious
            response.subsequent_ip_access = IPAccess.from_report(result.subsequent)
        return response


class StatusResponse(BaseModel):
    """Status message for liveness checks, resets and errors."""
    status: str
