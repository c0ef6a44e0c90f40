"""Conversation Starters - Suggested Opening Questions

Deterministic suggestions shown before the first user message, tailored by
pregnancy week, stated conditions, activity level and the next appointment.
"""
import logging
from typing import List, Optional, Tuple

from models.context import ChatContext, UserPreferences, UserProfile
from services.prompt_composer import resolve_user_context
from tools.context_formatters import format_date_safe

logger = logging.getLogger(__name__)

Starter = Tuple[str, str]  # (label, prompt)

GENERIC_STARTERS: List[Starter] = [
    ("Nutrition tips", "What are some healthy eating tips during pregnancy?"),
    ("Common discomforts", "What are common pregnancy discomforts and how can I ease them?"),
]


def _trimester_starter(weeks: Optional[int]) -> Optional[Starter]:
    if weeks is None or weeks <= 0:
        return None
    if weeks <= 13:
        return ("Morning sickness", "Any tips for managing morning sickness in the first trimester?")
    if weeks <= 27:
        return ("Baby's movements", f"What should I know about feeling my baby move at {weeks} weeks?")
    return ("Signs of labor", "What are the signs that labor is starting?")


def _condition_starters(conditions: Optional[str]) -> List[Starter]:
    text = (conditions or "").lower()
    starters = []
    if "diabetes" in text:
        starters.append(("Diabetes & diet", "What general diet tips help with managing diabetes during pregnancy?"))
    if "hypertension" in text or "high blood pressure" in text:
        starters.append(("Blood pressure", "What lifestyle habits are generally recommended for high blood pressure in pregnancy?"))
    return starters


def _activity_starter(activity_level: Optional[str]) -> Optional[Starter]:
    level = (activity_level or "").lower()
    if "sedentary" in level or "light" in level:
        return ("Gentle exercise", "What kinds of gentle exercise are usually considered safe during pregnancy?")
    return None


def _appointment_starter(context: Optional[ChatContext]) -> Optional[Starter]:
    if context is None or not context.upcoming_appointments:
        return None
    appt = context.upcoming_appointments[0]
    appt_type = appt.appointment_type or "appointment"
    when = format_date_safe(appt.date_time or appt.date)
    return ("Prepare for appointment",
            f"What questions could I ask at my upcoming {appt_type} on {when}?")


def suggest_starters(prefs: Optional[UserPreferences],
                     profile: Optional[UserProfile],
                     context: Optional[ChatContext],
                     limit: int = 4) -> List[Starter]:
    """
    Pick up to ``limit`` (label, prompt) starters.

    Order: trimester, conditions, activity, next appointment, then the
    generic nutrition and discomfort starters. Duplicated labels are dropped.
    """
    snapshot = resolve_user_context(prefs, profile)

    candidates: List[Optional[Starter]] = [_trimester_starter(snapshot.weeks_pregnant)]
    candidates.extend(_condition_starters(snapshot.pre_existing_conditions))
    candidates.append(_activity_starter(snapshot.activity_level))
    candidates.append(_appointment_starter(context))
    candidates.extend(GENERIC_STARTERS)

    starters: List[Starter] = []
    seen = set()
    for starter in candidates:
        if starter is None or starter[0] in seen:
            continue
        seen.add(starter[0])
        starters.append(starter)

    logger.debug(f"Suggested {min(len(starters), limit)} conversation starters")
    return starters[:max(limit, 0)]
