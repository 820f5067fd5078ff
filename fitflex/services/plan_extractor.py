"""Turn coach replies into structured weekly training plans.

Two paths exist. ``extract_structured_plan`` reads a JSON plan when the model
was asked for one and complied. ``extract_plan`` is the best-effort text miner
for ordinary prose replies: it looks for weekday lines, guesses the session
type from keywords, and falls back to a fixed template when the reply clearly
talks about a plan but has no usable schedule.
"""

from __future__ import annotations

import json
import logging
import re

from pydantic import ValidationError

from fitflex.models.schemas import SessionType, TrainingPlan, TrainingSession


logger = logging.getLogger(__name__)

PLAN_REQUEST_KEYWORDS = (
    "training plan",
    "workout plan",
    "running plan",
    "training schedule",
    "create a plan",
    "make a plan",
    "plan for",
    "training program",
    "5k plan",
    "10k plan",
    "half marathon plan",
    "marathon plan",
    "beginner plan",
    "intermediate plan",
    "advanced plan",
)

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

DAY_PATTERNS = tuple(
    re.compile(rf"\b(?:{name.lower()}s?|{name[:3].lower()})\b", re.IGNORECASE) for name in DAY_NAMES
)

TITLE_PATTERN = re.compile(r"(?:plan|program|schedule).*?(?:for|:)\s*([^.\n]+)", re.IGNORECASE)
PLAN_DURATION_PATTERN = re.compile(r"(\d+[-\s]?weeks?|\d+[-\s]?months?)", re.IGNORECASE)
DISTANCE_PATTERN = re.compile(
    r"\d+(?:\.\d+)?(?:\s*-\s*\d+(?:\.\d+)?)?\s*(?:k|km|miles?|mi)\b",
    re.IGNORECASE,
)
SESSION_DURATION_PATTERN = re.compile(r"(\d+)\s*(min|minutes?|hrs?|hours?)", re.IGNORECASE)
LEADING_DAY_PATTERN = re.compile(
    r"^[\s\-*#>]*\**(?:(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)s?"
    r"|mon|tue|wed|thu|fri|sat|sun)\b\**[\s:,\-*]*",
    re.IGNORECASE,
)
JSON_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)

# keyword groups in priority order
_TYPE_KEYWORDS: tuple[tuple[SessionType, tuple[str, ...]], ...] = (
    ("rest", ("rest", "off")),
    ("interval", ("interval", "speed", "track")),
    ("tempo", ("tempo", "threshold")),
    ("long", ("long", "endurance")),
    ("easy", ("easy", "recovery", "jog")),
)

_DEFAULT_DURATIONS: dict[str, str] = {
    "rest": "Rest",
    "interval": "45-60 min",
    "tempo": "45-60 min",
    "long": "60-120 min",
    "easy": "30-45 min",
}

_DEFAULT_DESCRIPTIONS: dict[str, str] = {
    "rest": "Rest day or light stretching",
    "interval": "Interval training session",
    "tempo": "Tempo run at comfortably hard pace",
    "long": "Long steady run at easy pace",
    "easy": "Easy run at conversational pace",
}

GENERIC_DESCRIPTION = "Training session"
PLAN_DESCRIPTION = "AI-generated training plan"

TEMPLATE_SESSIONS = (
    ("Monday", "easy", "30-45 min", "5-7 km", "Easy run at conversational pace"),
    ("Tuesday", "interval", "45-60 min", "6-8 km", "Speed work and intervals"),
    ("Wednesday", "rest", "Rest", None, "Rest day or cross-training"),
    ("Thursday", "tempo", "45-60 min", "6-8 km", "Tempo run at comfortably hard pace"),
    ("Friday", "rest", "Rest", None, "Rest day or easy cross-training"),
    ("Saturday", "long", "60-90 min", "10-15 km", "Long run at steady, comfortable pace"),
    ("Sunday", "easy", "30-45 min", "4-6 km", "Recovery run at very easy pace"),
)

MIN_SESSIONS = 3
TEMPLATE_MIN_LENGTH = 200


def detect_plan_request(message: str) -> bool:
    """Return True when the user is asking for a training plan."""
    lowered = message.lower()
    return any(keyword in lowered for keyword in PLAN_REQUEST_KEYWORDS)


def classify_session_type(line: str) -> SessionType:
    """First matching keyword group wins; plain lines default to easy."""
    lowered = line.lower()
    for session_type, keywords in _TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return session_type
    return "easy"


def _match_day(line: str) -> str | None:
    for name, pattern in zip(DAY_NAMES, DAY_PATTERNS):
        if pattern.search(line):
            return name
    return None


def _session_duration(line: str, default: str) -> str:
    match = SESSION_DURATION_PATTERN.search(line)
    if not match:
        return default
    amount = int(match.group(1))
    unit = match.group(2).lower()
    if unit.startswith(("hr", "hour")):
        amount *= 60
    return f"{amount} min"


def _parse_session(day: str, line: str) -> TrainingSession:
    session_type = classify_session_type(line)
    has_keyword = any(
        keyword in line.lower() for _, keywords in _TYPE_KEYWORDS for keyword in keywords
    )

    distance_match = DISTANCE_PATTERN.search(line)
    description = LEADING_DAY_PATTERN.sub("", line).strip()
    if len(description) <= 10:
        description = _DEFAULT_DESCRIPTIONS[session_type] if has_keyword else GENERIC_DESCRIPTION

    return TrainingSession(
        day=day,
        type=session_type,
        duration=_session_duration(line, _DEFAULT_DURATIONS[session_type]),
        distance=distance_match.group(0) if distance_match else None,
        description=description,
    )


def _race_label(text: str) -> str:
    lowered = text.lower()
    if "5k" in lowered:
        return "5K"
    if "10k" in lowered:
        return "10K"
    if "half marathon" in lowered:
        return "Half Marathon"
    if "marathon" in lowered:
        return "Marathon"
    return "running"


def template_plan(race_label: str) -> TrainingPlan:
    """Fixed easy/interval/rest/tempo/rest/long/easy week for a race distance."""
    return TrainingPlan(
        title=f"{race_label} Training Plan",
        description=f"Personalized {race_label.lower()} training program",
        duration="8-12 weeks",
        sessions=[
            TrainingSession(
                day=day,
                type=session_type,
                duration=duration,
                distance=distance,
                description=description,
            )
            for day, session_type, duration, distance, description in TEMPLATE_SESSIONS
        ],
    )


def extract_plan(raw_text: str) -> TrainingPlan | None:
    """
    Mine a weekly plan out of free-form coach text.

    Each line mentioning a weekday becomes one session. With at least three
    sessions the plan is returned as found (not padded to seven days). With
    fewer, a long reply that mentions "plan" yields the fixed template for
    the race distance it names. Anything else returns None.

    Args:
        raw_text: Reply text from the language model

    Returns:
        TrainingPlan or None. Never raises.

    Example:
        >>> plan = extract_plan("Monday: Easy Run - 30 min, 5km\\n"
        ...                     "Wednesday: Tempo 40 min\\nSaturday: Long run 15km")
        >>> [s.type for s in plan.sessions]
        ['easy', 'tempo', 'long']
    """
    try:
        lines = [line.strip() for line in raw_text.split("\n") if line.strip()]

        title_match = TITLE_PATTERN.search(raw_text)
        title = title_match.group(1).strip() if title_match else "Training Plan"

        duration_match = PLAN_DURATION_PATTERN.search(raw_text)
        duration = duration_match.group(1) if duration_match else "Variable"

        sessions = []
        for line in lines:
            day = _match_day(line)
            if day is not None:
                sessions.append(_parse_session(day, line))

        if len(sessions) >= MIN_SESSIONS:
            return TrainingPlan(
                title=title,
                description=PLAN_DESCRIPTION,
                duration=duration,
                sessions=sessions,
            )

        if "plan" in raw_text.lower() and len(raw_text) > TEMPLATE_MIN_LENGTH:
            logger.info("No weekly schedule found in reply - using template plan")
            return template_plan(_race_label(raw_text))

        return None
    except Exception:
        logger.exception("Error parsing training plan from coach reply")
        return None


def _json_candidate(raw_text: str) -> str | None:
    fenced = JSON_BLOCK_PATTERN.search(raw_text)
    if fenced:
        return fenced.group(1)
    start = raw_text.find("{")
    end = raw_text.rfind("}")
    if start == -1 or end <= start:
        return None
    return raw_text[start : end + 1]


def extract_structured_plan(raw_text: str) -> TrainingPlan | None:
    """
    Read a JSON training plan embedded in the reply.

    Accepts a fenced ```json block or the outermost {...} span. The object
    must carry a non-empty "sessions" list; it is then validated as a
    TrainingPlan.
    Returns None when no valid plan object is present.
    """
    candidate = _json_candidate(raw_text)
    if candidate is None:
        return None

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError:
        logger.debug("Reply contains no parseable JSON plan")
        return None

    if not isinstance(payload, dict) or not isinstance(payload.get("sessions"), list):
        return None
    if not payload["sessions"]:
        return None

    payload.setdefault("title", "Training Plan")
    payload.setdefault("description", PLAN_DESCRIPTION)
    try:
        return TrainingPlan.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Structured plan failed validation: %s", exc)
        return None


def strip_plan_json(raw_text: str) -> str:
    """Remove a fenced JSON plan block so the chat shows only the prose."""
    return JSON_BLOCK_PATTERN.sub("", raw_text).strip()
