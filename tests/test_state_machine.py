import pytest

from stigmatized.services.state_machine import (
    ANY_STATE_ROUTES,
    LABEL_ROUTES,
    STATE_TRANSITIONS,
    TIMING_LABELS,
    DialogueState,
    Step,
    normalize_input,
    route_label,
    route_transition,
)


class TestRouteLabel:
    @pytest.mark.parametrize("text", ["step", "ok", "sure", "Yeah, Sure", "Yeah Sure", "Nah"])
    def test_step_one_labels(self, text):
        assert route_label(text) == Step.STEP_ONE

    def test_next_step_is_step_four(self):
        assert route_label("Next Step") == Step.STEP_FOUR

    @pytest.mark.parametrize("text", ["No", "no"])
    def test_no_offers_help_for_others(self, text):
        assert route_label(text) == Step.HELP_OTHERS

    def test_label_match_is_exact(self):
        assert route_label("next step") is None
        assert route_label(" step") is None

    def test_unknown_label(self):
        assert route_label("I'm fine") is None


class TestNormalizeInput:
    def test_casefolds_and_collapses_whitespace(self):
        assert normalize_input("  Yeah,   SURE ") == "yeah, sure"


class TestRouteTransition:
    def test_title_from_matching_state(self):
        assert route_transition(DialogueState.STEP_ONE, None, "Go on") == Step.STEP_TWO

    def test_same_title_from_other_state_does_not_match(self):
        assert route_transition(DialogueState.STEP_TWO, None, "Go on") is None

    def test_payload_is_tried_before_title(self):
        assert route_transition(DialogueState.STEP_THREE, "CONTINUE", "anything") == Step.STEP_FOUR

    def test_pause_from_every_step(self):
        for state in (DialogueState.STEP_ONE, DialogueState.STEP_TWO, DialogueState.STEP_THREE, DialogueState.STEP_FOUR):
            assert route_transition(state, "PAUSE", None) == Step.PAUSE

    @pytest.mark.parametrize("label", TIMING_LABELS)
    def test_every_timing_label_leads_to_advice(self, label):
        assert route_transition(DialogueState.AWAITING_TIMING, "TIMING", label) == Step.ADVICE
        assert route_transition(DialogueState.AWAITING_TIMING, None, label) == Step.ADVICE

    def test_any_state_keywords(self):
        for state in DialogueState:
            assert route_transition(state, None, "Step") == Step.STEP_ONE

    def test_no_only_answers_consent(self):
        assert route_transition(DialogueState.AWAITING_CONSENT, None, "No") == Step.HELP_OTHERS
        assert route_transition(DialogueState.STEP_TWO, None, "No") is None

    def test_no_candidates(self):
        assert route_transition(DialogueState.IDLE, None, None) is None


class TestTables:
    def test_tables_only_reference_known_steps(self):
        steps = set(LABEL_ROUTES.values()) | set(ANY_STATE_ROUTES.values())
        for transitions in STATE_TRANSITIONS.values():
            steps |= set(transitions.values())
        assert steps <= set(Step)

    def test_state_table_keys_are_normalized(self):
        for transitions in STATE_TRANSITIONS.values():
            for key in transitions:
                assert key == normalize_input(key)
