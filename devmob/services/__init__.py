"""
DevMob Onboarding Bot - Services Package
========================================

Story generation, invite attribution, onboarding and the audit log.

Server: the DevMob
"""
