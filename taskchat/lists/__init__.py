"""
TASKCHAT - Task Lists Module

Task/TaskList entities, their storage, and the list endpoints.
"""
