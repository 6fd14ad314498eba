"""
TASKCHAT - Natural-language task list command engine.
"""
