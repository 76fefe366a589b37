from stigmatized.services.result import Result
from stigmatized.services.state_machine import (
    DialogueState,
    RoutingMode,
    Step,
    normalize_input,
    route_label,
    route_transition,
)
