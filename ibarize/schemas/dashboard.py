from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ibarize.schemas.property import Property

class Toast(BaseModel):
    title: str
    description: str = ""
    variant: Literal["default", "destructive"] = "default"

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"

class ActionResult(BaseModel):
    toast: Optional[Toast] = None
    data: Any = None

class BulkActionRequest(BaseModel):
    action: Literal["delete", "status_active", "status_pending", "status_sold"]
    ids: List[str] = Field(default_factory=list)

class LoginRequest(BaseModel):
    email: str
    password: str

class NotificationSettings(BaseModel):
    newInquiries: bool = True
    weeklyReports: bool = True
    propertyViews: bool = False
    systemUpdates: bool = True

class DisplaySettings(BaseModel):
    theme: Literal["light", "dark"] = "light"
    language: str = "en"
    currency: str = "rwf"

class BrokerSettings(BaseModel):
    brokerName: str = "IBARIZE REAL ESTATE"
    contactPhone: str = "+250 780 429 006"
    email: str = "broker@ibarize.com"
    location: str = "KICUKIRO CENTER - Behind Bank BPR"
    bio: str = ""
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)

class User(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    theme: Optional[Literal["light", "dark"]] = None
    language: Optional[str] = None
    currency: Optional[str] = None
    notifications: Optional[Dict[str, bool]] = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, value):
        return str(value)

class Analytics(BaseModel):
    totalProperties: int = 0
    totalViews: int = 0
    totalLeads: int = 0
    averagePrice: float = 0

class Overview(BaseModel):
    total: int
    active: int
    pending: int
    sold: int
    featured: int
    average_price: float
    by_type: Dict[str, int]
    analytics: Optional[Analytics] = None

class DashboardListResponse(BaseModel):
    total: int
    shown: int
    active_filters: int
    items: List[Property]
