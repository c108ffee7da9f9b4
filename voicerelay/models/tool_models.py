"""
OpenAI Function Tool Models

Pydantic models describing the function tools the relay offers to the model.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class TemperatureUnit(str, Enum):
    """Units accepted by the weather tool."""

    CELSIUS = "celsius"
    FAHRENHEIT = "fahrenheit"


class ToolParameter(BaseModel):
    """Base model for tool parameters."""

    type: str
    description: Optional[str] = None
    enum: Optional[List[str]] = None
    default: Optional[Any] = None

    def model_dump(self, **kwargs):
        data = super().model_dump(**kwargs)
        return {k: v for k, v in data.items() if v is not None}


class ToolParameters(BaseModel):
    """Model for tool parameters schema."""

    type: str = "object"
    properties: Dict[str, ToolParameter]
    required: Optional[List[str]] = None

    def model_dump(self, **kwargs):
        data = super().model_dump(**kwargs)
        data["properties"] = {
            key: param.model_dump() for key, param in self.properties.items()
        }
        if data.get("required") is None:
            data.pop("required", None)
        return data


class OpenAITool(BaseModel):
    """Model for OpenAI function tool definition."""

    type: str = "function"
    name: str
    description: str
    parameters: ToolParameters

    def model_dump(self, **kwargs):
        data = super().model_dump(**kwargs)
        data["parameters"] = self.parameters.model_dump()
        return data


class GetCurrentWeatherParameters(ToolParameters):
    """Parameters for the get_current_weather function."""

    properties: Dict[str, ToolParameter] = {
        "location": ToolParameter(
            type="string",
            description="The city and country, e.g., San Francisco, USA",
        ),
        "unit": ToolParameter(
            type="string",
            enum=[unit.value for unit in TemperatureUnit],
            description="The unit of temperature to use",
        ),
    }
    required: Optional[List[str]] = ["location", "unit"]


class GetCurrentWeatherTool(OpenAITool):
    """Tool for looking up the current weather."""

    name: str = "get_current_weather"
    description: str = "Get the current weather for a location"
    parameters: GetCurrentWeatherParameters = GetCurrentWeatherParameters()


def get_relay_tools() -> List[Dict[str, Any]]:
    """Tool definitions sent to the model when tools are enabled."""
    return [GetCurrentWeatherTool().model_dump()]
