"""Subscription billing: pricing, state machine, persistence and provider handles."""
