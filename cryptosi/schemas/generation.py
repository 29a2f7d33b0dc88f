from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional

NotificationStatus = Literal["success", "error", "warning", "info"]


class GenerationPayload(BaseModel):
    """JSON body sent to the image generation endpoint."""
    model_config = ConfigDict(protected_namespaces=())

    model_name: str
    prompt: str = Field(..., min_length=1)
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)
    steps: int = Field(..., ge=1, le=150)
    cfg_scale: float = Field(..., ge=1.0, le=20.0)
    backend: Literal["auto"] = "auto"
    negative_prompt: Optional[str] = None
    controlnet_name: Optional[str] = None
    controlnet_image: Optional[str] = Field(None, description="Base64 payload without data URL prefix")
    init_image: Optional[str] = Field(None, description="Base64 payload without data URL prefix")
    temperature: Optional[float] = Field(None, ge=0.0, le=0.5)

    def to_request_body(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class GeneratedImage(BaseModel):
    image: str  # Base64 encoded JPEG


class GenerationResponse(BaseModel):
    images: List[GeneratedImage] = Field(..., min_length=1)


class Notification(BaseModel):
    """Dismissible message shown next to the form."""
    id: int
    title: str
    description: str
    status: NotificationStatus
    duration: int = 3000  # milliseconds
    is_closable: bool = True


# --- Form transition bodies ---

class ModelSelection(BaseModel):
    model_config = ConfigDict(protected_namespaces=())
    model_name: str

class PromptText(BaseModel):
    text: str = ""

class CommonNegativesToggle(BaseModel):
    checked: bool

class Dimensions(BaseModel):
    width: Optional[int] = None
    height: Optional[int] = None

class DimensionStep(BaseModel):
    field: Literal["width", "height"]
    direction: Literal[1, -1]

class Sampling(BaseModel):
    steps: Optional[int] = None
    cfg_scale: Optional[float] = None

class ControlnetSelection(BaseModel):
    controlnet_name: str

class TemperatureValue(BaseModel):
    temperature: float

class RefinerToggle(BaseModel):
    enabled: bool

class DismissNotification(BaseModel):
    id: int


class FormSnapshot(BaseModel):
    """Everything the form needs to render itself."""
    model_config = ConfigDict(protected_namespaces=())

    model_name: str
    prompt: str
    negative_prompt: str
    use_common_negatives: bool
    width: int
    height: int
    steps: int
    cfg_scale: float
    controlnet_name: str
    controlnet_image: Optional[str] = None
    init_image: Optional[str] = None
    temperature: float
    enable_refiner: bool
    capabilities: Dict[str, Any]
    models: List[Dict[str, str]]
    is_loading: bool = False
    result: Optional[str] = None
    notifications: List[Notification] = Field(default_factory=list)
