"""HubEvent - Evento de estado de dispositivo tal como lo emite el hub.

Formato esperado (Maker API / eventsocket):
{
    "source": "DEVICE",
    "name": "switch",
    "displayName": "Kitchen Light",
    "value": "on",
    "unit": null,
    "deviceId": 42,
    "hubId": 0,
    "locationId": 1,
    "installedAppId": 0,
    "descriptionText": "Kitchen Light was turned on"
}

Todos los campos son opcionales. Los ids llegan como números desde el hub
y se normalizan a string.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HubEvent(BaseModel):
    """Evento efímero, uno por mensaje recibido."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    name: Optional[str] = None
    value: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    device_id: Optional[str] = Field(default=None, alias="deviceId")
    location_id: Optional[str] = Field(default=None, alias="locationId")
    hub_id: Optional[str] = Field(default=None, alias="hubId")
    installed_app_id: Optional[str] = Field(default=None, alias="installedAppId")
    source: Optional[str] = None
    unit: Optional[str] = None
    description_text: Optional[str] = Field(default=None, alias="descriptionText")

    @field_validator("*", mode="before")
    @classmethod
    def coerce_scalar(cls, v: Any) -> Any:
        # El hub manda ids numéricos; bool es subclase de int
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v
