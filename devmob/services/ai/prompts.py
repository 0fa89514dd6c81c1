"""
DevMob Onboarding Bot - Story Prompts
=====================================

Interview questions and the biography prompt template.

Server: the DevMob
"""

from typing import List, NamedTuple


# =============================================================================
# Interview Questions
# =============================================================================

class Question(NamedTuple):
    key: str
    text: str


INTERVIEW_QUESTIONS: List[Question] = [
    Question("expectation", "What do you expect to find here in the DevMob?"),
    Question("mafia_nickname", "Pick your mafia nickname. What should the family call you?"),
    Question("superpower", "What's your superpower? The one skill nobody in the Underworld can match."),
    Question("pros_and_cons", "Name one strength and one weakness of yours. Be honest, the Don can tell."),
]
"""Asked in this order; the keys are the fields the story prompt reads."""

ANSWER_KEYS = tuple(q.key for q in INTERVIEW_QUESTIONS)


# =============================================================================
# Placeholders
# =============================================================================

PLACEHOLDER_NOT_CONFIGURED = "The story machine isn't set up yet. The Don will write your legend by hand."
PLACEHOLDER_PROVIDER_ERROR = "Something went wrong while writing your story (provider error). Code: {status}"
PLACEHOLDER_EMPTY = "The storyteller came back with nothing. Your legend stays a secret for now."
PLACEHOLDER_UNEXPECTED = "An unexpected error happened while writing your story."

DEFAULT_STORY_TITLE = "A New Member's Story"


# =============================================================================
# Story Prompt
# =============================================================================

STORY_SYSTEM = "You write short roleplay stories for a mafia-themed Discord server called \"the DevMob\"."

STORY_PROMPT_TEMPLATE = """The city is called "The Underworld". It is full of places like Coding Alley, Debuggers Street,
The Underworld Casino, Don's Office, The Underworld Academy, Police HQ, Black Market,
Hidden Docks, Tech Lab, Abandoned Warehouse and more.

The server runs on a ranked hierarchy of roles:
- The Don: head of the family, the highest authority.
- Consigliere: the Don's closest advisor.
- The Don's Kin: the Don's close family.
- Associate: approved members of the family.
- Outsider: people outside the family with limited contact.
- Shady Snitch: informants holding secret information (a role, not a person's name).

YOUR TASK: write a short, exciting story for the new member that is dynamic, surprising and
mafia-flavored, with a light sarcastic comedic touch. The new member is the center of the action,
and the person who invited them appears in the story directly.

THE STORY MUST HAVE:
1. A mafia alias for the new member, inspired by their nickname or their skill.
2. A dramatic background: joining is never easy. A chase, a challenge, a dangerous job, or an unexpected twist.
3. The inviter woven in: use their alias, their role and a piece of their previous story.
4. Mafia vocabulary: secret operations, threats, pursuits, black-market deals, break-ins.
5. Coding touches: technical or hacking skills can save the day or expose a secret, but keep the mood mafia.
6. A comedic, sarcastic flavor. Not too serious.
7. Short, fun and full of surprises.

NEW MEMBER:
- Expectations from the server: {expectation}
- Mafia nickname: {mafia_nickname}
- Superpower: {superpower}
- Strength and weakness: {pros_and_cons}

INVITER:
- Alias: {inviter_name}
- Role: {inviter_role}
- Previous story: {inviter_story}

FINAL RULES:
- Never repeat the same story.
- Use every piece of the new member's information.
- Make the story unique every time.
- Repeat the mafia nickname throughout the story.
- The superpower must play a central role in the events.
- End the story with a glimpse of the member's expectations from the server.
- Put a short title on the first line.
"""


__all__ = [
    "Question",
    "INTERVIEW_QUESTIONS",
    "ANSWER_KEYS",
    "PLACEHOLDER_NOT_CONFIGURED",
    "PLACEHOLDER_PROVIDER_ERROR",
    "PLACEHOLDER_EMPTY",
    "PLACEHOLDER_UNEXPECTED",
    "DEFAULT_STORY_TITLE",
    "STORY_SYSTEM",
    "STORY_PROMPT_TEMPLATE",
]
