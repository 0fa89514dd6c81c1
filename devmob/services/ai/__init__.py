"""
DevMob Onboarding Bot - AI Package
==================================

Story generation and the interview question set.

Server: the DevMob
"""

from .prompts import INTERVIEW_QUESTIONS, ANSWER_KEYS, DEFAULT_STORY_TITLE, Question
from .service import StoryGenerator, extract_story_title

__all__ = [
    "StoryGenerator",
    "extract_story_title",
    "INTERVIEW_QUESTIONS",
    "ANSWER_KEYS",
    "DEFAULT_STORY_TITLE",
    "Question",
]
