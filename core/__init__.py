"""Chatkin core: context, policy, operations and notifications."""
