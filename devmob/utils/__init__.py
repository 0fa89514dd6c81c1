"""
DevMob Onboarding Bot - Utilities Package
=========================================

Retry, background task, error handling and HTTP error logging helpers.

Server: the DevMob
"""
