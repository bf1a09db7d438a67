"""
votebridge - Serial Voting Bridge

Bridges a polling web app with wireless voting devices attached to a
serial base station. Button presses are collected per device and
tallied for yes/no or multiple choice questions.
"""

__version__ = "1.0.0"
