"""Hacker-terminal multiple-choice quiz."""
