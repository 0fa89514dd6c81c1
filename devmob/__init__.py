"""
DevMob Onboarding Bot
=====================

Onboarding bot for the DevMob, a mafia roleplay Discord community.

Server: the DevMob
"""

__version__ = "1.0.0"
