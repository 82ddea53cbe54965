"""Seller onboarding reconciliation.

Rebuilds the four-step wizard position from independently fetched remote
records (Business, LegalInfo, SocialInfo, Application). The evaluator and
resolver are pure; the controller, submission manager and status gate do
the I/O and own every fallback decision.
"""
