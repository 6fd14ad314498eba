"""
TASKCHAT - Chat Module

Chat turns: prompt composition, generator call, and the command pipeline.
"""
