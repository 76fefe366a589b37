"""Canned replies of the support dialogue.

Each step is a fixed text (or a small set of equivalent phrasings picked at
random) plus the quick replies that anticipate the user's next input.
"""

import random
from dataclasses import dataclass
from typing import Optional

from stigmatized.schemas.dialogue import QuickReply
from stigmatized.services.state_machine import TIMING_LABELS, DialogueState, Step


@dataclass(frozen=True)
class ScriptedReply:
    texts: tuple[str, ...]
    quick_replies: tuple[QuickReply, ...] = ()
    next_state: Optional[DialogueState] = None

    def render(self, rng: random.Random, **values: str) -> str:
        template = self.texts[0] if len(self.texts) == 1 else rng.choice(self.texts)
        return template.format(**values)


def _qr(title: str, payload: str) -> QuickReply:
    return QuickReply(title=title, payload=payload)


GREETINGS = ("Hey {name}!", "Hello {name}!", "Hi {name}!")
THANKS_REPLIES = ("You are welcome", "Welcome", "Glad I could help")
BYE_REPLIES = ("Bye bye", "Goodbye", "Bye")
DEFAULT_NAME = "there"

ATTACHMENT_TEXT = "Thank you for always keeping in touch but I can only understand text messages."

WELCOME_TEXT = (
    "Hi {name}!\n\n"
    "Welcome to Stigmatized.\n\n"
    "I am Chloe, here to offer any help I can, to you or any other person who has been "
    "involved in any form of sexual assault, and hey! it's just between you and I.\n\n"
    "Have you ever experienced any form of sexual assault before?"
)

ACKNOWLEDGE_STORY_TEXT = "Please go on. I'm here for you"

PAUSE_TEXT = "Alright, just type 'step' when you are ready"

REPORTING_TEXT = (
    "It may be too much to ask but reporting a rape case to appropriate authorities is your "
    "civic responsibility. You may be saving another victim and at the same time making sure "
    "the guilty does not go free, which will also deter future offenders."
)

HELP_OTHERS_TEXT = (
    "Rape is a very serious act which is a danger to human existence. Perhaps I can help you "
    "recommend ways to help someone who has experienced such an act."
)

ASK_TIMING_TEXT = "When did this occur:"

ADVICE_TEXT = (
    "I want to make it clear to you that it is not your fault that this happened. Therefore "
    "you don't have any reason to blame yourself.\n"
    "1. They chose to rape, you are the victim not the guilty.\n"
    "2. There is no surefire way to identify a rapist. Sometimes they are completely normal, "
    "nice, charming and non-threatening.\n"
    "3. Rape is a crime of opportunity. Studies show that rapists choose victims based on their "
    "vulnerability, not on how they appear or how flirtatious they are.\n"
    "4. Date rapists often defend themselves by claiming the assault was a drunken mistake or "
    "miscommunication. But research shows that the vast majority of date rapists are repeat "
    "offenders.\n"
    "5. Just because you've previously consented to sex with someone doesn't give them "
    "perpetual rights to your body. If your spouse, boyfriend, or lover forces sex against "
    "your will, it's rape.\n"
    "Opening up can be a good step towards healing.\n\n"
    "Can you tell me how it happened?"
)

FEELINGS_REPLIES = (
    "I can't say I understand all you're going through but I am here to help.\n\n"
    "Would you like me to recommend steps to help you recover from such trauma?",
    "I know it must be really difficult right now but all hope is not lost.\n\n"
    "I can help you with steps to get better. Would you want that?",
    "This must be very difficult but believe me when I say all hope is not lost.\n\n"
    "Allow me to recommend steps to help you with this experience.",
)

STEP_ONE_TEXT = (
    "*Open up about what happened to you\n\n"
    "It can be extraordinarily difficult to admit that you were raped or sexually assaulted. "
    "There's a stigma attached. You may be afraid of how others will react. But when you stay "
    "silent, you deny yourself help and reinforce your victimhood.\n\n"
    "Reach out to someone you trust. You can't heal when you're avoiding the truth, and hiding "
    "only adds to feelings of shame. Be selective about who you tell, especially at first: "
    "someone who will be supportive, empathetic, and calm. If you don't have someone you "
    "trust, talk to a therapist or call a rape crisis hotline.\n\n"
    "Challenge your sense of helplessness and isolation. Remind yourself that you have "
    "strengths and coping skills that can get you through tough times. Helping others is one "
    "of the best ways to reclaim your sense of power.\n\n"
    "Consider joining a support group for other survivors. Support groups can help you feel "
    "less isolated and provide invaluable information on how to cope and recover. If you "
    "can't find one in your area, look for an online group.\n\n"
    "Would you want me to continue?"
)

STEP_TWO_TEXT = (
    "*Cope with feelings of guilt and shame\n\n"
    "Even if you understand that you're not to blame, you may still struggle with a sense of "
    "guilt or shame. As you acknowledge the truth of what happened, it will be easier to "
    "accept that you are not responsible. You have nothing to be ashamed about.\n\n"
    "Feelings of guilt and shame often stem from misconceptions such as:\n\n"
    "You didn't stop the assault from happening. In the midst of an assault your brain and "
    "body are in shock. Many people say they feel \"frozen\". You did the best you could "
    "under extreme circumstances.\n\n"
    "You trusted someone you \"shouldn't\" have. It's natural to wonder if you missed warning "
    "signs. Your attacker is the only one to blame, and the one who should feel guilty and "
    "ashamed, not you.\n\n"
    "You were drunk or not cautious enough. Regardless of the circumstances, the only one "
    "responsible for the assault is the perpetrator. Assign responsibility where it belongs.\n\n"
    "I'm sure this is a lot. I can continue if you want that."
)

STEP_THREE_TEXT = (
    "*Prepare for flashbacks and upsetting memories\n\n"
    "Flashbacks, nightmares, and intrusive memories are extremely common, especially in the "
    "first few months following an assault.\n\n"
    "To reduce the stress of flashbacks and upsetting memories:\n\n"
    "Try to anticipate and prepare for triggers such as anniversary dates, people or places "
    "associated with the assault, and certain sights, sounds, or smells.\n\n"
    "Pay attention to your body's danger signals. Your body and emotions give you clues when "
    "you're starting to feel stressed and unsafe.\n\n"
    "Take immediate steps to self-soothe. One of the quickest ways to calm anxiety and panic "
    "is to slow down your breathing.\n\n"
    "When a flashback happens, accept and reassure yourself that it is a memory, not reality. "
    "The traumatic event is over and you survived. Look around you: the assault isn't "
    "happening right now and you are not actually in danger.\n\n"
    "Can we go to the next one?"
)

STEP_FOUR_TEXT = (
    "*Reconnect to your body and feelings\n\n"
    "After an assault you may start trying to numb yourself or avoid any associations with "
    "the trauma. But you can't selectively numb your feelings. When you shut down the "
    "unpleasant sensations, you also shut down your self-awareness and capacity for joy.\n\n"
    "Signs that you're avoiding and numbing in unhelpful ways include feeling physically shut "
    "down or separate from your body, having trouble concentrating, compulsively using drugs "
    "or alcohol, and feeling detached from the people and activities you used to enjoy.\n\n"
    "Reconnecting with your body and feelings may feel threatening, but it's not actually "
    "dangerous. Feelings, while powerful, are not reality. Once you're back in touch with your "
    "body and feelings, you will feel more safe, confident, and powerful.\n\n"
    "This is the last step, I bet you want to hear it all."
)

FINAL_STEP_TEXT = (
    "*Stay connected and nurture yourself\n\n"
    "It's common to feel isolated following a sexual assault, but support from other people "
    "is vital to your recovery. Support doesn't mean you always have to talk about what "
    "happened: having fun and laughing with people who care about you can be equally healing. "
    "Participate in social activities, even if you don't feel like it, and make new friends.\n\n"
    "Healing is a gradual, ongoing process. Take time to rest and restore your body's "
    "balance. Be smart about media consumption and avoid anything that could trigger bad "
    "memories. Avoid alcohol and drugs. Eat right, exercise regularly, and get plenty of "
    "sleep.\n\n"
    "Did you report this to the police?"
)

FALLBACK_TEXT = "This is embarrassing but I cannot understand your text: {text}."


SCRIPT: dict[Step, ScriptedReply] = {
    Step.ATTACHMENT: ScriptedReply(texts=(ATTACHMENT_TEXT,)),
    Step.WELCOME: ScriptedReply(
        texts=(WELCOME_TEXT,),
        quick_replies=(
            _qr("Yes, recently", "CONSENT_RECENT"),
            _qr("Yes, long ago", "CONSENT_LONG_AGO"),
            _qr("No", "CONSENT_NO"),
        ),
        next_state=DialogueState.AWAITING_CONSENT,
    ),
    Step.HELLO: ScriptedReply(texts=GREETINGS),
    Step.ACKNOWLEDGE_STORY: ScriptedReply(
        texts=(ACKNOWLEDGE_STORY_TEXT,),
        next_state=DialogueState.AWAITING_STORY,
    ),
    Step.PAUSE: ScriptedReply(texts=(PAUSE_TEXT,), next_state=DialogueState.PAUSED),
    Step.STEP_ONE: ScriptedReply(
        texts=(STEP_ONE_TEXT,),
        quick_replies=(_qr("Go on", "CONTINUE"), _qr("Maybe Later", "PAUSE")),
        next_state=DialogueState.STEP_ONE,
    ),
    Step.STEP_TWO: ScriptedReply(
        texts=(STEP_TWO_TEXT,),
        quick_replies=(_qr("Keep Going", "CONTINUE"), _qr("Lets take a break", "PAUSE")),
        next_state=DialogueState.STEP_TWO,
    ),
    Step.STEP_THREE: ScriptedReply(
        texts=(STEP_THREE_TEXT,),
        quick_replies=(_qr("Next Step", "CONTINUE"), _qr("Not now", "PAUSE")),
        next_state=DialogueState.STEP_THREE,
    ),
    Step.STEP_FOUR: ScriptedReply(
        texts=(STEP_FOUR_TEXT,),
        quick_replies=(_qr("Definitely", "CONTINUE"), _qr("Not now", "PAUSE")),
        next_state=DialogueState.STEP_FOUR,
    ),
    Step.FINAL_STEP: ScriptedReply(
        texts=(FINAL_STEP_TEXT,),
        quick_replies=(_qr("I reported", "REPORTED"), _qr("I did not", "NOT_REPORTED")),
        next_state=DialogueState.AWAITING_REPORT_STATUS,
    ),
    Step.REPORTING: ScriptedReply(texts=(REPORTING_TEXT,), next_state=DialogueState.IDLE),
    Step.HELP_OTHERS: ScriptedReply(texts=(HELP_OTHERS_TEXT,), next_state=DialogueState.IDLE),
    Step.ASK_TIMING: ScriptedReply(
        texts=(ASK_TIMING_TEXT,),
        quick_replies=tuple(_qr(label, "TIMING") for label in TIMING_LABELS),
        next_state=DialogueState.AWAITING_TIMING,
    ),
    Step.ADVICE: ScriptedReply(
        texts=(ADVICE_TEXT,),
        quick_replies=(_qr("Yeah", "SHARE_STORY"), _qr("Nah", "SKIP_STORY")),
        next_state=DialogueState.AWAITING_ADVICE_RESPONSE,
    ),
    Step.RECOMMEND: ScriptedReply(
        texts=FEELINGS_REPLIES,
        quick_replies=(_qr("Yeah, Sure", "START_STEPS"), _qr("Maybe Later", "PAUSE")),
        next_state=DialogueState.AWAITING_RECOMMENDATION,
    ),
    Step.THANKS: ScriptedReply(texts=THANKS_REPLIES),
    Step.BYE: ScriptedReply(texts=BYE_REPLIES),
    Step.FALLBACK: ScriptedReply(texts=(FALLBACK_TEXT,)),
}
