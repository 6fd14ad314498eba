"""
TASKCHAT - Command Engine

Turns generator output into validated mutations of a user's task lists:
extract -> normalize -> resolve -> reconcile -> sync.
"""
