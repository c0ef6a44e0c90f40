from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ReadingKind(Enum):
    BLOOD_PRESSURE = "BP"
    BLOOD_SUGAR = "Sugar"
    WEIGHT = "Weight"


@dataclass(frozen=True)
class UserPreferences:
    """Ephemeral answers from the pre-chat form (this session only)."""
    feeling: Optional[str] = None
    age: Optional[int] = None
    weeks_pregnant: Optional[int] = None
    pre_existing_conditions: Optional[str] = None
    specific_concerns: Optional[str] = None


@dataclass(frozen=True)
class UserProfile:
    """Long-term memory: the stored profile record."""
    name: Optional[str] = None
    age: Optional[int] = None
    weeks_pregnant: Optional[int] = None
    pre_existing_conditions: Optional[str] = None

    # Pregnancy History & Preferences
    previous_pregnancies: Optional[int] = None
    delivery_preference: Optional[str] = None

    # Lifestyle & Preferences
    partner_support: Optional[str] = None
    work_situation: Optional[str] = None
    dietary_preferences: List[str] = field(default_factory=list)
    activity_level: Optional[str] = None
    chat_tone_preference: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        """Build a profile from a stored record (camelCase document keys)."""
        return cls(
            name=data.get("name"),
            age=data.get("age"),
            weeks_pregnant=data.get("weeksPregnant"),
            pre_existing_conditions=data.get("preExistingConditions"),
            previous_pregnancies=data.get("previousPregnancies"),
            delivery_preference=data.get("deliveryPreference"),
            partner_support=data.get("partnerSupport"),
            work_situation=data.get("workSituation"),
            dietary_preferences=list(data.get("dietaryPreferences") or []),
            activity_level=data.get("activityLevel"),
            chat_tone_preference=data.get("chatTonePreference"),
        )


@dataclass(frozen=True)
class UserContextSnapshot:
    """Facts resolved from profile + preferences, fixed for one session."""
    name: str
    age: Optional[int] = None
    weeks_pregnant: Optional[int] = None
    pre_existing_conditions: Optional[str] = None
    feeling: Optional[str] = None
    specific_concerns: Optional[str] = None
    previous_pregnancies: Optional[int] = None
    delivery_preference: Optional[str] = None
    partner_support: Optional[str] = None
    work_situation: Optional[str] = None
    dietary_preferences: List[str] = field(default_factory=list)
    activity_level: Optional[str] = None
    chat_tone_preference: Optional[str] = None


# === Health Readings ===

@dataclass(frozen=True)
class BloodPressureReading:
    systolic: int
    diastolic: int
    recorded_at: Optional[str] = None


@dataclass(frozen=True)
class BloodSugarReading:
    level: float
    measurement_type: Optional[str] = None  # fasting | post_meal | random
    recorded_at: Optional[str] = None


@dataclass(frozen=True)
class WeightReading:
    weight: float
    unit: Optional[str] = None  # kg | lbs
    recorded_at: Optional[str] = None


@dataclass(frozen=True)
class Appointment:
    date: Optional[str] = None
    time: Optional[str] = None  # "10:00 AM", "14:30"
    appointment_type: Optional[str] = None
    notes: Optional[str] = None
    is_completed: bool = False
    date_time: Optional[datetime] = None  # Filled in by the context engine


@dataclass(frozen=True)
class ChatContext:
    """Snapshot of external data taken when the session opens.

    Readings are for contextual phrasing only, never medical inference.
    """
    latest_bp: Optional[BloodPressureReading] = None
    latest_sugar: Optional[BloodSugarReading] = None
    latest_weight: Optional[WeightReading] = None
    upcoming_appointments: List[Appointment] = field(default_factory=list)
    recent_topics: List[str] = field(default_factory=list)
