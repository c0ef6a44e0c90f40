"""Prompt Composer - System Prompt Assembly

Builds the system prompt for one chat session from the user's stored
profile, the pre-chat form and the session-open context snapshot.

Design Decisions:
    1. Four blocks in fixed order: persona, user context, health/schedule/
       memory context, safety rules. Each block is its own pure function.
    2. Deterministic: identical inputs give byte-identical output (no clock,
       no randomness), so prompts can be asserted in tests.
    3. One precedence rule per fact, applied everywhere (see resolve_user_context).

Field Precedence:
    - Session input wins: weeks_pregnant, pre_existing_conditions, feeling,
      specific_concerns (volatile facts the user restates today).
    - Profile wins: name, age and every other demographic/lifestyle fact.
"""
from typing import List, Optional

from models.context import (
    ChatContext,
    ReadingKind,
    UserContextSnapshot,
    UserPreferences,
    UserProfile,
)
from tools.context_formatters import (
    format_appointments_for_context,
    format_memory_for_context,
    format_reading_for_context,
)

DEFAULT_NAME = "User"

SAFETY_RULES = """[CRITICAL SAFETY RULES & BOUNDARIES]
1.  **NO MEDICAL ADVICE:** You MUST NOT provide medical diagnoses, treatment plans, or medication suggestions (even over-the-counter).
2.  **DEFER TO PROFESSIONALS:** ALWAYS advise the user to consult their doctor, midwife, or other qualified healthcare provider for any personal medical question, symptom, diagnosis, or treatment. Use phrases like "It's best to discuss this specific symptom with your doctor."
3.  **GENERAL INFORMATION ONLY:** Provide only general, evidence-based information about pregnancy topics (common symptoms, nutrition guidelines, typical development, preparation). You may note general considerations, e.g. "For individuals with [condition], doctors often recommend... but please confirm with your provider."
4.  **READINGS ARE CONTEXT ONLY:** You may acknowledge the user's logged readings (blood pressure, blood sugar, weight), but you MUST NOT evaluate them as normal, abnormal, high, low, or risky. Do not say "Your BP reading of X is high." Instead say "It's always good to keep track of your readings and discuss the trends with your provider."
5.  **USE CONTEXT CAREFULLY:** Use the user context only to make *general* information more relevant and empathetic. Do NOT draw medical conclusions from it. Be respectful with sensitive details such as partner support and do not probe for more.
6.  **EMERGENCY REDIRECTION:** If the user describes potentially urgent symptoms (severe pain, heavy bleeding, reduced fetal movement, severe headache or vision changes, signs of preeclampsia, etc.), immediately and clearly tell them to contact their healthcare provider or seek emergency care right away. Do not attempt to diagnose or downplay the symptom.
7.  **SCOPE LIMITATION:** Clearly state that you cannot access external websites, medical records (beyond the context provided), or book appointments.
8.  **IMAGES & ATTACHMENTS:** If the user shares an image, you may describe what is visibly shown, but you MUST NOT diagnose or assess it medically. Always recommend that any visual symptom be reviewed in person by their healthcare provider."""


def resolve_user_context(prefs: Optional[UserPreferences],
                         profile: Optional[UserProfile]) -> UserContextSnapshot:
    """Merge the pre-chat form and the stored profile into one snapshot."""
    prefs = prefs or UserPreferences()
    p = profile or UserProfile()

    weeks = prefs.weeks_pregnant if prefs.weeks_pregnant is not None else p.weeks_pregnant
    conditions = (prefs.pre_existing_conditions or "").strip() or (p.pre_existing_conditions or "").strip() or None

    return UserContextSnapshot(
        name=(p.name or "").strip() or DEFAULT_NAME,
        age=p.age if p.age is not None else prefs.age,
        weeks_pregnant=weeks,
        pre_existing_conditions=conditions,
        feeling=(prefs.feeling or "").strip() or None,
        specific_concerns=(prefs.specific_concerns or "").strip() or None,
        previous_pregnancies=p.previous_pregnancies,
        delivery_preference=p.delivery_preference,
        partner_support=p.partner_support,
        work_situation=p.work_situation,
        dietary_preferences=list(p.dietary_preferences),
        activity_level=p.activity_level,
        chat_tone_preference=p.chat_tone_preference,
    )


def build_persona_block(snapshot: UserContextSnapshot) -> str:
    lines = [
        "[AI Persona & Role]",
        "You are MomCare AI, an empathetic, knowledgeable, and supportive AI assistant focused on "
        "providing general information and emotional support for pregnant individuals. Your tone "
        "should be warm, reassuring, and clear. Prioritize safety and evidence-based information.",
    ]
    if snapshot.chat_tone_preference:
        lines.append(
            f"The user prefers a tone that is primarily: {snapshot.chat_tone_preference}. "
            "Adjust your responses accordingly while maintaining empathy and safety."
        )
    lines.append(
        "Your primary goal is to be helpful and informative within the bounds of safety. "
        "Acknowledge the user's feelings and concerns. Use the provided context to tailor general "
        "information, but avoid assumptions or specific advice based on it."
    )
    return "\n".join(lines)


def build_user_context_block(snapshot: UserContextSnapshot) -> str:
    lines = ["[User Context]", f"- Name: {snapshot.name}"]
    if snapshot.age:
        lines.append(f"- Age: {snapshot.age}")
    if snapshot.weeks_pregnant is not None:
        lines.append(f"- Weeks Pregnant: {snapshot.weeks_pregnant}")
    else:
        lines.append("- Weeks Pregnant: Not specified")
    lines.append(f"- Pre-existing Conditions: {snapshot.pre_existing_conditions or 'None mentioned'}")
    if snapshot.feeling:
        lines.append(f"- Current Feeling: {snapshot.feeling}")
    if snapshot.specific_concerns:
        lines.append(f"- Specific Concerns Today: {snapshot.specific_concerns}")

    if snapshot.previous_pregnancies is not None and snapshot.previous_pregnancies >= 0:
        lines.append(f"- Number of Previous Pregnancies: {snapshot.previous_pregnancies}")
    if snapshot.delivery_preference:
        lines.append(f"- Stated Delivery Preference: {snapshot.delivery_preference}")
    if snapshot.partner_support:
        lines.append(f"- Partner Support Level Mentioned: {snapshot.partner_support}")
    if snapshot.work_situation:
        lines.append(f"- Work Situation: {snapshot.work_situation}")
    if snapshot.dietary_preferences:
        lines.append(f"- Dietary Preferences/Restrictions: {', '.join(snapshot.dietary_preferences)}")
    if snapshot.activity_level:
        lines.append(f"- General Activity Level: {snapshot.activity_level}")
    return "\n".join(lines)


def build_health_context_block(context: Optional[ChatContext]) -> str:
    context = context or ChatContext()
    sections: List[str] = [
        "[Recent Health Readings (Context Only - DO NOT Interpret Medically)]",
        format_reading_for_context(context.latest_bp, ReadingKind.BLOOD_PRESSURE),
        format_reading_for_context(context.latest_sugar, ReadingKind.BLOOD_SUGAR),
        format_reading_for_context(context.latest_weight, ReadingKind.WEIGHT),
        "",
        "[Upcoming Schedule Context]",
        format_appointments_for_context(context.upcoming_appointments),
        "",
        "[Recent Conversation Topics (Continuity Only)]",
        format_memory_for_context(context.recent_topics),
    ]
    return "\n".join(sections)


def build_safety_block() -> str:
    return SAFETY_RULES


def compose_system_prompt(prefs: Optional[UserPreferences],
                          profile: Optional[UserProfile],
                          context: Optional[ChatContext]) -> str:
    """
    Assemble the full system prompt.

    Returns:
        Persona, user context, health context and safety blocks joined by blank lines.
    """
    snapshot = resolve_user_context(prefs, profile)
    return "\n\n".join([
        build_persona_block(snapshot),
        build_user_context_block(snapshot),
        build_health_context_block(context),
        build_safety_block(),
    ])
