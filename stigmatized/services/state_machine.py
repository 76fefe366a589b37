from enum import Enum
from typing import Optional


class DialogueState(str, Enum):
    IDLE = "idle"
    AWAITING_CONSENT = "awaiting_consent"
    AWAITING_TIMING = "awaiting_timing"
    AWAITING_ADVICE_RESPONSE = "awaiting_advice_response"
    AWAITING_STORY = "awaiting_story"
    AWAITING_RECOMMENDATION = "awaiting_recommendation"
    STEP_ONE = "step_one"
    STEP_TWO = "step_two"
    STEP_THREE = "step_three"
    STEP_FOUR = "step_four"
    AWAITING_REPORT_STATUS = "awaiting_report_status"
    PAUSED = "paused"


class Step(str, Enum):
    """Scripted replies the dispatcher can send."""

    ATTACHMENT = "attachment"
    WELCOME = "welcome"
    HELLO = "hello"
    ACKNOWLEDGE_STORY = "acknowledge_story"
    PAUSE = "pause"
    STEP_ONE = "step_one"
    STEP_TWO = "step_two"
    STEP_THREE = "step_three"
    STEP_FOUR = "step_four"
    FINAL_STEP = "final_step"
    REPORTING = "reporting"
    HELP_OTHERS = "help_others"
    ASK_TIMING = "ask_timing"
    ADVICE = "advice"
    RECOMMEND = "recommend"
    THANKS = "thanks"
    BYE = "bye"
    FALLBACK = "fallback"


class RoutingMode(str, Enum):
    LABEL = "label"  # flat table on the visible button title
    STATE = "state"  # (state, input) transition table


# Flat label table: routing on the exact visible text, whatever the state.
LABEL_ROUTES: dict[str, Step] = {
    "Yeah": Step.ACKNOWLEDGE_STORY,
    "Not now": Step.PAUSE,
    "Maybe Later": Step.PAUSE,
    "Lets take a break": Step.PAUSE,
    "Yeah, Sure": Step.STEP_ONE,
    "Yeah Sure": Step.STEP_ONE,
    "step": Step.STEP_ONE,
    "ok": Step.STEP_ONE,
    "sure": Step.STEP_ONE,
    "Nah": Step.STEP_ONE,
    "Go on": Step.STEP_TWO,
    "Keep Going": Step.STEP_THREE,
    "Next Step": Step.STEP_FOUR,
    "Definitely": Step.FINAL_STEP,
    "I reported": Step.REPORTING,
    "I did Not": Step.REPORTING,
    "I did not": Step.REPORTING,
    "No": Step.HELP_OTHERS,
    "no": Step.HELP_OTHERS,
    "Yes, long ago": Step.ASK_TIMING,
    "Yes, recently": Step.ASK_TIMING,
}

# Label that leads to advice without a date entity from the classifier.
ADVICE_LABEL = "More than 6 months"

TIMING_LABELS = (
    "Today",
    "Yesterday",
    "Last Week",
    "Last Month",
    "More than 3 months",
    "More than 6 months",
    "More than a year",
)


def normalize_input(text: str) -> str:
    return " ".join(text.casefold().split())


# State-gated table. Keys are normalized titles or quick-reply payloads.
STATE_TRANSITIONS: dict[DialogueState, dict[str, Step]] = {
    DialogueState.AWAITING_CONSENT: {
        "yes, recently": Step.ASK_TIMING,
        "yes, long ago": Step.ASK_TIMING,
        "no": Step.HELP_OTHERS,
        "consent_recent": Step.ASK_TIMING,
        "consent_long_ago": Step.ASK_TIMING,
        "consent_no": Step.HELP_OTHERS,
    },
    DialogueState.AWAITING_TIMING: {
        **{normalize_input(label): Step.ADVICE for label in TIMING_LABELS},
        "timing": Step.ADVICE,
    },
    DialogueState.AWAITING_ADVICE_RESPONSE: {
        "yeah": Step.ACKNOWLEDGE_STORY,
        "nah": Step.STEP_ONE,
        "share_story": Step.ACKNOWLEDGE_STORY,
        "skip_story": Step.STEP_ONE,
    },
    DialogueState.AWAITING_RECOMMENDATION: {
        "yeah, sure": Step.STEP_ONE,
        "yeah sure": Step.STEP_ONE,
        "maybe later": Step.PAUSE,
        "start_steps": Step.STEP_ONE,
        "pause": Step.PAUSE,
    },
    DialogueState.STEP_ONE: {
        "go on": Step.STEP_TWO,
        "maybe later": Step.PAUSE,
        "continue": Step.STEP_TWO,
        "pause": Step.PAUSE,
    },
    DialogueState.STEP_TWO: {
        "keep going": Step.STEP_THREE,
        "lets take a break": Step.PAUSE,
        "continue": Step.STEP_THREE,
        "pause": Step.PAUSE,
    },
    DialogueState.STEP_THREE: {
        "next step": Step.STEP_FOUR,
        "not now": Step.PAUSE,
        "continue": Step.STEP_FOUR,
        "pause": Step.PAUSE,
    },
    DialogueState.STEP_FOUR: {
        "definitely": Step.FINAL_STEP,
        "not now": Step.PAUSE,
        "continue": Step.FINAL_STEP,
        "pause": Step.PAUSE,
    },
    DialogueState.AWAITING_REPORT_STATUS: {
        "i reported": Step.REPORTING,
        "i did not": Step.REPORTING,
        "reported": Step.REPORTING,
        "not_reported": Step.REPORTING,
    },
}

# Typed keywords accepted in any state.
ANY_STATE_ROUTES: dict[str, Step] = {
    "step": Step.STEP_ONE,
    "ok": Step.STEP_ONE,
    "sure": Step.STEP_ONE,
}


def route_label(text: str) -> Optional[Step]:
    """Exact-match lookup on the visible text."""
    return LABEL_ROUTES.get(text)


def route_transition(state: DialogueState, *candidates: Optional[str]) -> Optional[Step]:
    """Look up the first candidate (payload, then title) allowed from state."""
    allowed = STATE_TRANSITIONS.get(state, {})
    keys = [normalize_input(candidate) for candidate in candidates if candidate]
    for key in keys:
        if key in allowed:
            return allowed[key]
    for key in keys:
        if key in ANY_STATE_ROUTES:
            return ANY_STATE_ROUTES[key]
    return None
